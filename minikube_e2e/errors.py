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

"""Error taxonomy for the scenario phases.

Each phase raises its own family so the final report can tell apart a
scenario that never got to assert, an assertion that failed, and a cleanup
that left resources behind.
"""

from __future__ import annotations

from typing import Any


class ScenarioError(Exception):
    """Base class for all scenario errors."""


class ConfigurationError(ScenarioError):
    """Malformed environment or CLI input, raised before SETUP begins."""


class WaitTimeout(ScenarioError):
    """An awaited external condition did not hold within its time budget.

    Attributes:
        description: Human readable name of the awaited condition.
        timeout: Time budget in seconds.
        last_observed: Last value returned by the probe.
    """

    def __init__(self, description: str, timeout: float, last_observed: Any = None) -> None:
        self.description = description
        self.timeout = timeout
        self.last_observed = last_observed
        super().__init__(
            f"Timed out after {timeout:g}s waiting for {description} (last observed: {last_observed!r})"
        )


class SetupFailure(ScenarioError):
    """Provisioning failed or timed out; RUN is aborted but TEARDOWN still runs.

    Attributes:
        step: Name of the setup step that failed.
    """

    def __init__(self, message: str, step: str = "setup") -> None:
        self.step = step
        super().__init__(message)


class CliInstallError(SetupFailure):
    """The CLI tool could not be installed in the host's tool registry."""


class ExtensionInstallError(SetupFailure):
    """The extension could not be installed, or was already installed.

    Attributes:
        record: ExtensionRecord of an install that was triggered but not
            confirmed, or None when the host was never asked to install.
    """

    def __init__(self, message: str, step: str = "setup", record: Any = None) -> None:
        self.record = record
        super().__init__(message, step=step)


class ClusterCreationTimeout(SetupFailure):
    """Cluster creation did not finish within its time budget."""


class ClusterCreationRejected(SetupFailure):
    """The host refused to create the cluster (name collision, tool error, ...)."""


class AssertionFailure(ScenarioError, AssertionError):
    """A resource never reached its expected state within the assertion timeout.

    Attributes:
        query: The ResourceStateQuery that failed.
        last_observed: Last state reported by the host, or None if never listed.
    """

    def __init__(self, query: Any, last_observed: str | None, timeout: float) -> None:
        self.query = query
        self.last_observed = last_observed
        super().__init__(
            f"{query.kind} '{query.name}' did not reach state {query.expected} within {timeout:g}s "
            f"(last observed: {last_observed or 'not listed'})"
        )


class ExtensionRemovalError(ScenarioError):
    """An installed extension could not be located or did not go away."""


class TeardownFailure(ScenarioError):
    """A cleanup step failed and may have left resources behind.

    Attributes:
        step: Name of the teardown step.
        cause: The underlying exception.
    """

    def __init__(self, step: str, cause: BaseException) -> None:
        self.step = step
        self.cause = cause
        super().__init__(f"Teardown step '{step}' failed: {cause}")
