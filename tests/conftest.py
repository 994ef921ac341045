# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Shared fixtures for minikube_e2e tests."""

from __future__ import annotations

import pytest

from fakes import FakeHost
from minikube_e2e.config import ScenarioConfig, resolve_config

SCENARIO_ENV_VARS = (
    "SKIP_EXTENSION_INSTALL",
    "MINIKUBE_DRIVER_GHA",
    "MINIKUBE_DRIVER",
    "DRIVER",
    "EXTENSION_OCI_IMAGE",
    "EXTENSION_IMAGE",
    "EXTENSION_NAME",
    "EXTENSION_LABEL",
    "CLI_TOOL_NAME",
    "GITHUB_ACTIONS",
    "CI",
    "RUNNER_OS",
    "SCENARIO_HOST",
    "HOST_FACTORY",
    "CLUSTER_NAME",
    "MINIKUBE_NODE",
    "NODE_NAME",
    "RESOURCE_NAME",
    "CLUSTER_CREATION_TIMEOUT_MS",
    "CREATION_TIMEOUT_MS",
    "TEARDOWN_TIMEOUT_MS",
    "ASSERTION_TIMEOUT_MS",
    "CLI_INSTALL_TIMEOUT_MS",
    "EXTENSION_INSTALL_TIMEOUT_MS",
    "POLL_INTERVAL_MS",
    "MINIKUBE_CLI_PREINSTALLED",
    "CLI_PREINSTALLED",
    "MINIKUBE_CLI_BUNDLED_OS",
    "RECORDING_NAME",
)


@pytest.fixture(autouse=True)
def clean_env(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate unit tests from the CI environment they run in."""
    if request.node.get_closest_marker("k8s_e2e"):
        return
    for var in SCENARIO_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def sleeps() -> list[float]:
    """Delays requested from the sleep replacement."""
    return []


@pytest.fixture
def sleep(sleeps: list[float]):
    """Sleep replacement that records delays instead of waiting."""
    return sleeps.append


@pytest.fixture
def make_config():
    """Build a fast-polling ScenarioConfig with field overrides."""

    def _make(**overrides) -> ScenarioConfig:
        overrides.setdefault("poll_interval_ms", 0)
        return resolve_config(**overrides)

    return _make


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()
