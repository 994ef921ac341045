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

"""Constants, dependency loading, and dep_value helper."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_dependencies() -> dict:
    """Load artifact names and image references from dependencies.yaml.

    Returns:
        Parsed YAML content as a nested dictionary.
    """
    deps_file = Path(__file__).resolve().parent / "dependencies.yaml"
    with open(deps_file) as f:
        return yaml.safe_load(f)


DEPENDENCIES = load_dependencies()


def dep_value(*keys: str, default: Any = None) -> Any:
    """Safely traverse the DEPENDENCIES dict by key path.

    Args:
        *keys: Sequence of dictionary keys to traverse.
        default: Value to return if any key is missing.

    Returns:
        The value at the nested key path, or *default* if not found.
    """
    node = DEPENDENCIES
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


# -- Cluster defaults --
DEFAULT_CLUSTER_NAME = dep_value("cluster", "name", default="minikube")
DEFAULT_RECORDING_NAME = dep_value("cluster", "recording_name", default="minikube-kubernetes-e2e")
DEFAULT_DRIVER = ""

# -- Extension defaults --
DEFAULT_EXTENSION_NAME = dep_value("extension", "name", default="minikube")
DEFAULT_EXTENSION_LABEL = dep_value("extension", "label", default="redhat.minikube")
DEFAULT_EXTENSION_IMAGE = dep_value("extension", "image")
DEFAULT_CLI_TOOL_NAME = dep_value("cli_tool", "name", default="Minikube")

# -- Time budgets (milliseconds) --
DEFAULT_CLUSTER_CREATION_TIMEOUT_MS = 300_000
DEFAULT_TEARDOWN_TIMEOUT_MS = 90_000
DEFAULT_ASSERTION_TIMEOUT_MS = 60_000
DEFAULT_CLI_INSTALL_TIMEOUT_MS = 120_000
DEFAULT_EXTENSION_INSTALL_TIMEOUT_MS = 120_000
DEFAULT_POLL_INTERVAL_MS = 1_000

# -- Platform facts --
PLATFORM_LINUX = "linux"

# -- Validation patterns --
CLUSTER_NAME_PATTERN = r"^[a-zA-Z0-9][a-zA-Z0-9._-]*$"
IMAGE_REFERENCE_PATTERN = r"^[a-z0-9][\w.\-/:]*(@sha256:[a-f0-9]{64})?$"
HOST_FACTORY_PATTERN = r"^[\w.]+:[\w.]+$"

# -- Teardown step names --
STEP_DELETE_CLUSTER = "delete-cluster"
STEP_REMOVE_EXTENSION = "remove-extension"
STEP_RELEASE_CONTEXT = "release-context"

# -- Setup step names --
STEP_INIT = "init"
STEP_INSTALL_EXTENSION = "install-extension"
STEP_INSTALL_CLI = "install-cli"
STEP_CREATE_CLUSTER = "create-cluster"

# -- CLI exit codes --
EXIT_PASSED = 0
EXIT_ASSERTION_FAILED = 1
EXIT_SETUP_FAILED = 2
EXIT_TEARDOWN_FAILED = 3
EXIT_CONFIGURATION_ERROR = 4
