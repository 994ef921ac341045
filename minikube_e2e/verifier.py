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

"""Resource state assertions against the host's Kubernetes view."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from minikube_e2e import console
from minikube_e2e.errors import AssertionFailure, WaitTimeout
from minikube_e2e.host import HostApplication, ResourceKind, ResourceState
from minikube_e2e.utils import await_condition


@dataclass(frozen=True)
class ResourceStateQuery:
    """Expected lifecycle state of one listed resource."""

    kind: ResourceKind
    name: str
    expected: ResourceState

    def __str__(self) -> str:
        return f"{self.kind.value}/{self.name}={self.expected.value}"


def check_state(
    host: HostApplication,
    query: ResourceStateQuery,
    *,
    timeout: float,
    interval: float,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Poll the resource listing until the resource reports the expected state.

    Args:
        host: Host application driver.
        query: Resource and state to wait for.
        timeout: Seconds before the assertion fails.
        interval: Seconds between polls.
        sleep: Sleep function between polls.

    Raises:
        AssertionFailure: If the state was not reached, with the last observed state.
    """
    try:
        await_condition(
            lambda: host.get_resource_state(query.kind, query.name),
            lambda state: state == query.expected.value,
            timeout=timeout,
            interval=interval,
            description=str(query),
            sleep=sleep,
        )
    except WaitTimeout as err:
        raise AssertionFailure(query, err.last_observed, timeout) from None
    console.print(f"[green]\u2713 {query.kind.value} '{query.name}' is {query.expected.value}[/green]")
