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

"""Contract for the desktop host application driven by the scenario.

The host is an external collaborator (UI automation against the desktop
application). Only the operations below are consumed; implementations are
supplied through the ``SCENARIO_HOST`` factory path.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol, runtime_checkable


class ResourceKind(str, Enum):
    """Resource listings exposed by the host's Kubernetes view."""

    NODES = "Nodes"
    DEPLOYMENTS = "Deployments"
    PODS = "Pods"
    PVCS = "Persistent Volume Claims"
    CONFIGMAPS_SECRETS = "ConfigMaps & Secrets"
    SERVICES = "Services"
    INGRESSES_ROUTES = "Ingresses & Routes"
    JOBS = "Jobs"
    CRONJOBS = "CronJobs"


class ResourceState(str, Enum):
    """Lifecycle states reported for a listed resource."""

    RUNNING = "Running"
    STARTING = "Starting"
    STOPPED = "Stopped"
    DEGRADED = "Degraded"
    UNKNOWN = "Unknown"


@runtime_checkable
class ExtensionHandle(Protocol):
    """An installed extension located on the host's extensions page."""

    def remove_extension(self) -> None: ...


@runtime_checkable
class HostApplication(Protocol):
    """Operations the scenario consumes from the desktop host application."""

    def handle_welcome_page(self, skip: bool) -> None: ...

    def set_recording_name(self, name: str) -> None: ...

    def close(self) -> None: ...

    def open_cli_tools_settings(self) -> None: ...

    def is_cli_installed(self, tool_name: str) -> bool: ...

    def ensure_cli_installed(self, tool_name: str) -> None: ...

    def open_extensions(self) -> None: ...

    def extension_is_installed(self, label: str) -> bool: ...

    def install_extension_from_oci_image(self, reference: str) -> None: ...

    def get_installed_extension(self, name: str, label: str) -> ExtensionHandle | None: ...

    def create_cluster(
        self, name: str, interactive: bool, timeout: int, *, driver: str | None = None
    ) -> None: ...

    def delete_cluster(
        self, resource_name: str, node_name: str, cluster_name: str, *, timeout: int
    ) -> None: ...

    def get_resource_state(self, kind: ResourceKind, name: str) -> str | None: ...
