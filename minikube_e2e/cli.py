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

"""
cli.py - Command line entry point for the minikube Kubernetes e2e scenario.

Subcommands:
    scenario run      Create the cluster, check its resources, tear everything down
    scenario cleanup  Remove a cluster and extension left behind by an interrupted run
    config show       Print the configuration resolved from the environment

Environment Variables:
    - SCENARIO_HOST (module:factory building the host application driver)
    - SKIP_EXTENSION_INSTALL (default: false)
    - MINIKUBE_DRIVER_GHA (default: empty, host default driver)
    - EXTENSION_OCI_IMAGE (default: nightly minikube extension)
    - GITHUB_ACTIONS / CI, RUNNER_OS (platform facts)

Examples:
    # Full scenario on a developer machine
    minikube-e2e scenario run --host my_driver.podman_desktop:connect

    # CI run with an explicit driver and an extra pod check
    MINIKUBE_DRIVER_GHA=docker minikube-e2e scenario run --check Pods:coredns:Running
"""

from __future__ import annotations

import logging

import typer

from minikube_e2e.commands import config_cmd, scenario_cmd

app = typer.Typer(
    help="minikube Kubernetes end-to-end scenario for the desktop host application.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


app.add_typer(scenario_cmd.app, name="scenario")
app.add_typer(config_cmd.app, name="config")


if __name__ == "__main__":
    app()
