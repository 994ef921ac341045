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

"""Scenario runner: setup, resource checks, and guaranteed teardown.

Phases run strictly in order ``INIT -> SETUP -> RUN -> TEARDOWN -> DONE``.
A failure during INIT or SETUP skips RUN and goes straight to TEARDOWN.
TEARDOWN always runs; each cleanup step is isolated so one failing step
never prevents the next, and releasing the host context is unconditional.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from rich.panel import Panel
from rich.table import Table

from minikube_e2e import console, logger
from minikube_e2e.cli_tools import ensure_cli_installed
from minikube_e2e.cluster import ClusterHandle, create_cluster, delete_cluster, pending_handle
from minikube_e2e.config import ScenarioConfig, cli_install_skipped, resolve_config, select_strategy
from minikube_e2e.constants import (
    EXIT_ASSERTION_FAILED,
    EXIT_PASSED,
    EXIT_SETUP_FAILED,
    EXIT_TEARDOWN_FAILED,
    STEP_CREATE_CLUSTER,
    STEP_DELETE_CLUSTER,
    STEP_INIT,
    STEP_INSTALL_CLI,
    STEP_INSTALL_EXTENSION,
    STEP_RELEASE_CONTEXT,
    STEP_REMOVE_EXTENSION,
)
from minikube_e2e.errors import ConfigurationError, ExtensionInstallError, SetupFailure, TeardownFailure
from minikube_e2e.extension import (
    ExtensionRecord,
    install_extension,
    remove_extension,
    remove_extension_if_installed,
)
from minikube_e2e.host import HostApplication, ResourceKind, ResourceState
from minikube_e2e.utils import load_host, ms_to_seconds
from minikube_e2e.verifier import ResourceStateQuery, check_state

T = TypeVar("T")


class Phase(str, Enum):
    """Scenario lifecycle phases."""

    INIT = "init"
    SETUP = "setup"
    RUN = "run"
    TEARDOWN = "teardown"
    DONE = "done"


_TRANSITIONS: dict[Phase | None, frozenset[Phase]] = {
    None: frozenset({Phase.INIT}),
    Phase.INIT: frozenset({Phase.SETUP, Phase.TEARDOWN}),
    Phase.SETUP: frozenset({Phase.RUN, Phase.TEARDOWN}),
    Phase.RUN: frozenset({Phase.TEARDOWN}),
    Phase.TEARDOWN: frozenset({Phase.DONE}),
    Phase.DONE: frozenset(),
}


# ============================================================================
# Report
# ============================================================================

@dataclass
class CheckResult:
    """Outcome of one resource state check.

    Attributes:
        query: The checked resource and expected state.
        error: Failure raised by the check, or None if it passed.
    """

    query: ResourceStateQuery
    error: Exception | None = None

    @property
    def passed(self) -> bool:
        return self.error is None


@dataclass
class ScenarioReport:
    """What happened in each phase of one scenario run.

    Attributes:
        setup_error: Setup failure that prevented RUN, or None.
        checks: Results of the checks executed in RUN.
        teardown_failures: Cleanup steps that failed.
    """

    setup_error: SetupFailure | None = None
    checks: list[CheckResult] = field(default_factory=list)
    teardown_failures: list[TeardownFailure] = field(default_factory=list)

    @property
    def outcome(self) -> str:
        if self.setup_error is not None:
            return "setup-failed"
        if not all(check.passed for check in self.checks):
            return "assertion-failed"
        return "passed"

    @property
    def passed(self) -> bool:
        return self.outcome == "passed"

    @property
    def leaked_resources(self) -> bool:
        return bool(self.teardown_failures)

    @property
    def exit_code(self) -> int:
        """Process exit code for the outcome.

        Precedence is setup failure (2), then assertion failure (1), then
        leaked resources (3). A leak after a failed setup or check still exits
        with the earlier code; ``leaked_resources`` and the rendered report
        carry the leak.
        """
        if self.setup_error is not None:
            return EXIT_SETUP_FAILED
        if not self.passed:
            return EXIT_ASSERTION_FAILED
        if self.leaked_resources:
            return EXIT_TEARDOWN_FAILED
        return EXIT_PASSED


def default_checks(config: ScenarioConfig) -> list[ResourceStateQuery]:
    """Checks run when none are given: the cluster node reaches Running.

    Args:
        config: Resolved scenario configuration.

    Returns:
        List with the node Running check.
    """
    return [ResourceStateQuery(ResourceKind.NODES, config.node_name, ResourceState.RUNNING)]


# ============================================================================
# Cleanup
# ============================================================================

def _isolated_cleanup(step: str, fn: Callable[[], Any], failures: list[TeardownFailure]) -> None:
    """Run one cleanup step, recording its failure instead of propagating it."""
    try:
        fn()
    except Exception as err:
        failure = TeardownFailure(step, err)
        logger.error("%s", failure, exc_info=err)
        console.print(f"[red]\u274c {failure}[/red]")
        failures.append(failure)


def cleanup_leftovers(
    host: HostApplication,
    config: ScenarioConfig,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> list[TeardownFailure]:
    """Remove resources left behind by an interrupted scenario.

    Deletes the configured cluster and, when the extension lifecycle is
    enabled and the extension is still installed, removes it. The host
    context is always released.

    Args:
        host: Host application driver.
        config: Resolved scenario configuration.
        sleep: Sleep function used between polls.

    Returns:
        Cleanup steps that failed.
    """
    failures: list[TeardownFailure] = []
    interval = ms_to_seconds(config.poll_interval_ms)
    timeout_ms = config.teardown_timeout_ms
    console.print(Panel.fit("Cleaning up leftovers", style="bold blue"))

    def _remove_extension() -> None:
        record = ExtensionRecord(config.extension_name, config.extension_label, config.extension_image or "")
        remove_extension_if_installed(host, record, timeout=ms_to_seconds(timeout_ms), interval=interval, sleep=sleep)

    try:
        handle = pending_handle(config, select_strategy(config))
        _isolated_cleanup(STEP_DELETE_CLUSTER, lambda: delete_cluster(host, handle, timeout_ms=timeout_ms), failures)
        if config.extension_enabled:
            _isolated_cleanup(STEP_REMOVE_EXTENSION, _remove_extension, failures)
    finally:
        _isolated_cleanup(STEP_RELEASE_CONTEXT, host.close, failures)
    return failures


# ============================================================================
# Runner
# ============================================================================

class ScenarioRunner:
    """Drives one setup / check / teardown cycle against a host application.

    Args:
        host: Host application driver; owned by the runner until teardown closes it.
        config: Resolved scenario configuration.
        checks: Resource state checks for RUN, or None for default_checks.
        sleep: Sleep function used between polls.
        clock: Monotonic clock measuring the teardown deadline, in seconds.
    """

    def __init__(
        self,
        host: HostApplication,
        config: ScenarioConfig,
        checks: Iterable[ResourceStateQuery] | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.host = host
        self.config = config
        self.checks = list(checks) if checks is not None else default_checks(config)
        self.report = ScenarioReport()
        self.cluster: ClusterHandle | None = None
        self.extension: ExtensionRecord | None = None
        # install triggered but never confirmed; removed on teardown only if it shows up
        self.pending_extension: ExtensionRecord | None = None
        self._sleep = sleep
        self._clock = clock
        self._phase: Phase | None = None

    @property
    def phase(self) -> Phase | None:
        return self._phase

    @property
    def _interval(self) -> float:
        return ms_to_seconds(self.config.poll_interval_ms)

    def _advance(self, phase: Phase) -> None:
        if phase not in _TRANSITIONS[self._phase]:
            current = self._phase.value if self._phase else "start"
            raise RuntimeError(f"Cannot enter phase '{phase.value}' from '{current}'")
        logger.debug("Scenario phase %s -> %s", self._phase, phase.value)
        self._phase = phase

    # -- SETUP ---------------------------------------------------------------

    @staticmethod
    def _setup_step(step: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except SetupFailure:
            raise
        except Exception as err:
            raise SetupFailure(f"Setup step '{step}' failed: {err}", step=step) from err

    def _init(self) -> None:
        self.host.set_recording_name(self.config.recording_name)
        self.host.handle_welcome_page(True)

    def _install_extension(self) -> ExtensionRecord:
        return install_extension(
            self.host,
            self.config.extension_image,
            name=self.config.extension_name,
            label=self.config.extension_label,
            timeout=ms_to_seconds(self.config.extension_install_timeout_ms),
            interval=self._interval,
            sleep=self._sleep,
        )

    def _install_cli(self) -> None:
        ensure_cli_installed(
            self.host,
            self.config.cli_tool_name,
            timeout=ms_to_seconds(self.config.cli_install_timeout_ms),
            interval=self._interval,
            sleep=self._sleep,
        )

    def setup(self) -> None:
        """Run INIT and SETUP.

        Raises:
            SetupFailure: If any provisioning step fails; also kept in the report.
        """
        try:
            self._advance(Phase.INIT)
            console.print(Panel.fit(f"Scenario '{self.config.recording_name}'", style="bold blue"))
            self._setup_step(STEP_INIT, self._init)

            self._advance(Phase.SETUP)
            strategy = select_strategy(self.config)
            if self.config.extension_enabled:
                try:
                    self.extension = self._setup_step(STEP_INSTALL_EXTENSION, self._install_extension)
                except ExtensionInstallError as err:
                    self.pending_extension = err.record
                    raise
            if not cli_install_skipped(self.config):
                self._setup_step(STEP_INSTALL_CLI, self._install_cli)

            # record the triple before creating so a timed out attempt is still cleaned up
            self.cluster = pending_handle(self.config, strategy)
            self._setup_step(
                STEP_CREATE_CLUSTER,
                lambda: create_cluster(self.host, self.cluster, strategy, self.config.creation_timeout_ms),
            )
        except SetupFailure as err:
            self.report.setup_error = err
            logger.error("Setup failed at step '%s': %s", err.step, err)
            raise

    # -- RUN -----------------------------------------------------------------

    def verify(self, query: ResourceStateQuery) -> None:
        """Assert that a resource reaches its expected state.

        Args:
            query: Resource and expected state.

        Raises:
            AssertionFailure: If the state is not reached within the assertion timeout.
            RuntimeError: If called outside the RUN phase.
        """
        if self._phase is not Phase.RUN:
            raise RuntimeError("Resource checks can only run after a successful setup")
        check_state(
            self.host,
            query,
            timeout=ms_to_seconds(self.config.assertion_timeout_ms),
            interval=self._interval,
            sleep=self._sleep,
        )

    def run_checks(self) -> list[CheckResult]:
        """Run every registered check; a failing check does not stop the others.

        Returns:
            Results of all checks, also appended to the report.
        """
        console.print(Panel.fit("Verifying Kubernetes resources", style="bold blue"))
        for query in self.checks:
            try:
                self.verify(query)
                result = CheckResult(query)
            except AssertionError as err:
                logger.error("Check %s failed: %s", query, err)
                result = CheckResult(query, err)
            except Exception as err:
                logger.exception("Check %s raised an error", query)
                result = CheckResult(query, err)
            self.report.checks.append(result)
        return self.report.checks

    # -- TEARDOWN ------------------------------------------------------------

    def _cleanup(self, step: str, fn: Callable[[], Any]) -> None:
        _isolated_cleanup(step, fn, self.report.teardown_failures)

    def teardown(self) -> list[TeardownFailure]:
        """Run TEARDOWN: delete cluster, remove extension, release the host context.

        Returns:
            Teardown failures, also kept in the report.
        """
        self._advance(Phase.TEARDOWN)
        console.print(Panel.fit("Tearing down", style="bold blue"))
        deadline = self._clock() + ms_to_seconds(self.config.teardown_timeout_ms)

        def remaining_ms() -> int:
            return max(int((deadline - self._clock()) * 1000), 1)

        cluster, extension, pending = self.cluster, self.extension, self.pending_extension
        try:
            if cluster is not None:
                self._cleanup(
                    STEP_DELETE_CLUSTER,
                    lambda: delete_cluster(self.host, cluster, timeout_ms=remaining_ms()),
                )
            if extension is not None:
                self._cleanup(
                    STEP_REMOVE_EXTENSION,
                    lambda: remove_extension(
                        self.host,
                        extension,
                        timeout=ms_to_seconds(remaining_ms()),
                        interval=self._interval,
                        sleep=self._sleep,
                    ),
                )
            elif pending is not None:
                self._cleanup(
                    STEP_REMOVE_EXTENSION,
                    lambda: remove_extension_if_installed(
                        self.host,
                        pending,
                        timeout=ms_to_seconds(remaining_ms()),
                        interval=self._interval,
                        sleep=self._sleep,
                    ),
                )
        finally:
            self._cleanup(STEP_RELEASE_CONTEXT, self.host.close)
            self._advance(Phase.DONE)
        return self.report.teardown_failures

    # -- Entry points --------------------------------------------------------

    @contextmanager
    def session(self) -> Iterator[ScenarioRunner]:
        """Set up, yield for caller-driven checks, and always tear down.

        Raises:
            SetupFailure: If setup fails (after teardown has run).
            TeardownFailure: If the body succeeded but a cleanup step failed.
        """
        try:
            self.setup()
            self._advance(Phase.RUN)
            yield self
        finally:
            failures = self.teardown()
        if failures:
            raise failures[0]

    def run(self) -> ScenarioReport:
        """Run the whole scenario and report on every phase.

        Returns:
            The scenario report; setup, check and teardown failures are recorded, not raised.
        """
        try:
            self.setup()
        except SetupFailure:
            console.print("[red]\u274c Setup failed; skipping resource checks[/red]")
        else:
            self._advance(Phase.RUN)
            self.run_checks()
        finally:
            self.teardown()
        return self.report


# ============================================================================
# Reporting and entry point
# ============================================================================

def render_report(report: ScenarioReport) -> None:
    """Print the scenario report as a table.

    Args:
        report: Report of a finished scenario.
    """
    table = Table(title="Scenario report")
    table.add_column("Phase")
    table.add_column("Item")
    table.add_column("Result")

    if report.setup_error is not None:
        table.add_row("setup", report.setup_error.step, f"[red]{report.setup_error}[/red]")
    for check in report.checks:
        result = "[green]passed[/green]" if check.passed else f"[red]{check.error}[/red]"
        table.add_row("run", str(check.query), result)
    for failure in report.teardown_failures:
        table.add_row("teardown", failure.step, f"[red]{failure.cause}[/red]")
    console.print(table)

    if report.passed:
        console.print("[green]\u2705 Scenario passed[/green]")
    elif report.outcome == "setup-failed":
        console.print("[red]\u274c Scenario never reached its checks (setup failed)[/red]")
    else:
        console.print("[red]\u274c Scenario checks failed[/red]")
    if report.leaked_resources:
        console.print("[yellow]\u26a0\ufe0f  Cleanup failed; resources may have been left behind[/yellow]")


def run_scenario(
    config: ScenarioConfig | None = None,
    host: HostApplication | None = None,
    checks: Iterable[ResourceStateQuery] | None = None,
) -> ScenarioReport:
    """Resolve configuration, build the host, and run the scenario.

    Args:
        config: Resolved configuration, or None to resolve from the environment.
        host: Host application driver, or None to build one from ``config.host_factory``.
        checks: Resource checks, or None for default_checks.

    Returns:
        The scenario report.

    Raises:
        ConfigurationError: If configuration is malformed or no host can be built.
    """
    if config is None:
        config = resolve_config()
    if host is None:
        if not config.host_factory:
            raise ConfigurationError("No host application configured (set SCENARIO_HOST=module:factory)")
        host = load_host(config.host_factory, config)
    report = ScenarioRunner(host, config, checks).run()
    render_report(report)
    return report
