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

"""Scenario subcommands (run, cleanup)."""

from __future__ import annotations

import typer

from minikube_e2e import console
from minikube_e2e.config import ScenarioConfig, display_config, resolve_config
from minikube_e2e.constants import EXIT_CONFIGURATION_ERROR, EXIT_TEARDOWN_FAILED
from minikube_e2e.errors import ConfigurationError
from minikube_e2e.host import ResourceKind, ResourceState
from minikube_e2e.scenario import cleanup_leftovers, run_scenario
from minikube_e2e.utils import load_host
from minikube_e2e.verifier import ResourceStateQuery

app = typer.Typer(help="Run the minikube scenario or clean up after one.")


def _lookup(enum_cls, raw: str):
    for member in enum_cls:
        if raw.lower() in (member.value.lower(), member.name.lower()):
            return member
    choices = ", ".join(member.value for member in enum_cls)
    raise typer.BadParameter(f"Unknown value '{raw}' (choose from: {choices})")


def parse_check(raw: str) -> ResourceStateQuery:
    """Parse a ``Kind:name:State`` check argument.

    Args:
        raw: Check specification, e.g. ``Nodes:minikube:Running``.

    Returns:
        The corresponding ResourceStateQuery.

    Raises:
        typer.BadParameter: If the specification is malformed.
    """
    parts = raw.split(":")
    if len(parts) != 3 or not all(parts):
        raise typer.BadParameter(f"Check '{raw}' must look like Kind:name:State")
    kind, name, state = parts
    return ResourceStateQuery(_lookup(ResourceKind, kind), name, _lookup(ResourceState, state))


def _resolve_or_exit(**overrides) -> ScenarioConfig:
    try:
        return resolve_config(**overrides)
    except ConfigurationError as err:
        console.print(f"[red]\u274c {err}[/red]")
        raise typer.Exit(EXIT_CONFIGURATION_ERROR) from err


@app.command()
def run(
    host: str | None = typer.Option(
        None, "--host", help="Host factory as module:attribute (overrides SCENARIO_HOST)"),
    cluster_name: str | None = typer.Option(
        None, "--cluster-name", help="Cluster name (overrides CLUSTER_NAME)"),
    driver: str | None = typer.Option(
        None, "--driver", help="Driver for unattended creation on Linux CI"),
    extension_image: str | None = typer.Option(
        None, "--extension-image", help="Extension OCI image (overrides EXTENSION_OCI_IMAGE)"),
    skip_extension_install: bool | None = typer.Option(
        None, "--skip-extension-install/--install-extension",
        help="Skip extension and CLI installation (overrides SKIP_EXTENSION_INSTALL)"),
    creation_timeout_ms: int | None = typer.Option(
        None, "--creation-timeout-ms", help="Cluster creation budget in milliseconds"),
    check: list[str] | None = typer.Option(
        None, "--check", help="Resource check as Kind:name:State; repeatable (default: node Running)"),
) -> None:
    """Set up the cluster, run resource checks, and always tear down.

    Exits 0 on success, 2 if setup failed, 1 if a check failed, 3 if only
    cleanup failed, and 4 on a configuration error. A cleanup failure after a
    failed setup or check keeps the earlier code; the report still flags it.
    """
    checks = [parse_check(raw) for raw in check] if check else None
    config = _resolve_or_exit(
        host_factory=host,
        cluster_name=cluster_name,
        driver=driver,
        extension_image=extension_image,
        skip_extension_install=skip_extension_install,
        creation_timeout_ms=creation_timeout_ms,
    )
    display_config(config)
    try:
        report = run_scenario(config, checks=checks)
    except ConfigurationError as err:
        console.print(f"[red]\u274c {err}[/red]")
        raise typer.Exit(EXIT_CONFIGURATION_ERROR) from err
    raise typer.Exit(report.exit_code)


@app.command()
def cleanup(
    host: str | None = typer.Option(
        None, "--host", help="Host factory as module:attribute (overrides SCENARIO_HOST)"),
    cluster_name: str | None = typer.Option(
        None, "--cluster-name", help="Cluster name (overrides CLUSTER_NAME)"),
    skip_extension_install: bool | None = typer.Option(
        None, "--skip-extension-install/--install-extension",
        help="Leave the extension alone (overrides SKIP_EXTENSION_INSTALL)"),
) -> None:
    """Delete a leftover cluster and extension from an interrupted run."""
    config = _resolve_or_exit(
        host_factory=host, cluster_name=cluster_name, skip_extension_install=skip_extension_install,
    )
    if not config.host_factory:
        console.print("[red]\u274c No host application configured (set SCENARIO_HOST=module:factory)[/red]")
        raise typer.Exit(EXIT_CONFIGURATION_ERROR)
    try:
        host_app = load_host(config.host_factory, config)
    except ConfigurationError as err:
        console.print(f"[red]\u274c {err}[/red]")
        raise typer.Exit(EXIT_CONFIGURATION_ERROR) from err
    if cleanup_leftovers(host_app, config):
        raise typer.Exit(EXIT_TEARDOWN_FAILED)
    console.print("[green]\u2705 Cleanup complete[/green]")
