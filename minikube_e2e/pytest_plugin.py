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

"""pytest fixtures binding the scenario lifecycle to a test module.

Setup runs once before the module's tests, teardown once after them, and a
setup failure errors every test that depends on the scenario instead of
failing it. Enable with ``pytest_plugins = ["minikube_e2e.pytest_plugin"]``.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from minikube_e2e.config import ScenarioConfig, resolve_config
from minikube_e2e.errors import ConfigurationError
from minikube_e2e.host import HostApplication
from minikube_e2e.scenario import ScenarioRunner
from minikube_e2e.utils import load_host


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "k8s_e2e: end-to-end scenario against a live host application")


@pytest.fixture(scope="module")
def scenario_config() -> ScenarioConfig:
    """Scenario configuration resolved from the environment."""
    try:
        return resolve_config()
    except ConfigurationError as err:
        pytest.fail(str(err), pytrace=False)


@pytest.fixture(scope="module")
def scenario_host(scenario_config: ScenarioConfig) -> HostApplication:
    """Host application built from SCENARIO_HOST; skips when none is configured."""
    if not scenario_config.host_factory:
        pytest.skip("SCENARIO_HOST is not set")
    return load_host(scenario_config.host_factory, scenario_config)


@pytest.fixture(scope="module")
def minikube_scenario(
    scenario_host: HostApplication, scenario_config: ScenarioConfig
) -> Iterator[ScenarioRunner]:
    """A set-up scenario in its RUN phase, torn down after the module."""
    runner = ScenarioRunner(scenario_host, scenario_config)
    with runner.session():
        yield runner
