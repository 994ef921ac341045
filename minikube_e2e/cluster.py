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

"""minikube cluster creation and deletion through the host application."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from rich.panel import Panel

from minikube_e2e import console
from minikube_e2e.config import NonInteractive, ProvisioningStrategy, ScenarioConfig
from minikube_e2e.constants import STEP_CREATE_CLUSTER
from minikube_e2e.errors import ClusterCreationRejected, ClusterCreationTimeout, WaitTimeout
from minikube_e2e.host import HostApplication


@dataclass(frozen=True)
class ClusterHandle:
    """A cluster provisioned by this scenario.

    Attributes:
        name: Cluster name.
        node_name: Node listed for the cluster in the Nodes view.
        resource_name: Kubernetes resource entry removed together with the cluster.
        driver: Driver passed to the host, or None on the interactive branch.
        created_at: When creation was requested.
    """

    name: str
    node_name: str
    resource_name: str
    driver: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def pending_handle(config: ScenarioConfig, strategy: ProvisioningStrategy) -> ClusterHandle:
    """Build the handle describing the cluster a creation attempt will produce.

    Args:
        config: Resolved scenario configuration.
        strategy: Creation branch selected for this scenario.

    Returns:
        Handle carrying the (resource, node, cluster) triple used for deletion.
    """
    driver = strategy.driver if isinstance(strategy, NonInteractive) else None
    return ClusterHandle(
        name=config.cluster_name,
        node_name=config.node_name,
        resource_name=config.resource_name,
        driver=driver,
    )


def create_cluster(
    host: HostApplication,
    handle: ClusterHandle,
    strategy: ProvisioningStrategy,
    timeout_ms: int,
) -> ClusterHandle:
    """Create the cluster described by *handle* within *timeout_ms*.

    The non-interactive branch always passes a driver (possibly empty, meaning
    the host default); the interactive branch never does.

    Args:
        host: Host application driver.
        handle: Handle from pending_handle.
        strategy: Creation branch selected for this scenario.
        timeout_ms: Creation budget in milliseconds.

    Returns:
        The same handle, now backed by a running cluster.

    Raises:
        ClusterCreationTimeout: If creation did not finish within the budget.
        ClusterCreationRejected: If the host refused or failed to create the cluster.
    """
    console.print(Panel.fit(f"Creating minikube cluster '{handle.name}'", style="bold blue"))
    try:
        if isinstance(strategy, NonInteractive):
            console.print(f"[yellow]Driver: {strategy.driver or '(host default)'}[/yellow]")
            host.create_cluster(handle.name, False, timeout_ms, driver=strategy.driver)
        else:
            host.create_cluster(handle.name, True, timeout_ms)
    except (TimeoutError, WaitTimeout) as err:
        raise ClusterCreationTimeout(
            f"Cluster '{handle.name}' was not created within {timeout_ms}ms: {err}",
            step=STEP_CREATE_CLUSTER,
        ) from err
    except Exception as err:
        raise ClusterCreationRejected(
            f"Cluster '{handle.name}' creation failed: {err}", step=STEP_CREATE_CLUSTER
        ) from err
    console.print(f"[green]\u2705 Cluster '{handle.name}' created[/green]")
    return handle


def delete_cluster(host: HostApplication, handle: ClusterHandle, *, timeout_ms: int) -> None:
    """Delete the cluster together with its node and resource entries.

    Args:
        host: Host application driver.
        handle: Handle of the cluster to delete.
        timeout_ms: Deletion budget in milliseconds.
    """
    console.print(f"[yellow]\u2139\ufe0f  Deleting cluster '{handle.name}'...[/yellow]")
    host.delete_cluster(handle.resource_name, handle.node_name, handle.name, timeout=timeout_ms)
    console.print(f"[green]\u2705 Cluster '{handle.name}' deleted[/green]")
