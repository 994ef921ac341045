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

"""CLI tool installation through the host's settings surface."""

from __future__ import annotations

import time
from collections.abc import Callable

from rich.panel import Panel

from minikube_e2e import console
from minikube_e2e.constants import STEP_INSTALL_CLI
from minikube_e2e.errors import CliInstallError, WaitTimeout
from minikube_e2e.host import HostApplication
from minikube_e2e.utils import await_condition


def ensure_cli_installed(
    host: HostApplication,
    tool_name: str,
    *,
    timeout: float,
    interval: float,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Install a CLI tool in the host's tool registry unless it is already there.

    Args:
        host: Host application driver.
        tool_name: Display name of the tool in the CLI tools tab.
        timeout: Seconds to wait for the tool to show as installed.
        interval: Seconds between installation state polls.
        sleep: Sleep function between polls.

    Raises:
        CliInstallError: If installation fails or does not finish in time.
    """
    console.print(Panel.fit(f"Installing {tool_name} CLI", style="bold blue"))
    if host.is_cli_installed(tool_name):
        console.print(f"[yellow]\u2139\ufe0f  {tool_name} CLI already installed[/yellow]")
        return

    try:
        host.open_cli_tools_settings()
        host.ensure_cli_installed(tool_name)
        await_condition(
            lambda: host.is_cli_installed(tool_name),
            bool,
            timeout=timeout,
            interval=interval,
            description=f"{tool_name} CLI to be installed",
            sleep=sleep,
        )
    except WaitTimeout as err:
        raise CliInstallError(str(err), step=STEP_INSTALL_CLI) from err
    except Exception as err:
        raise CliInstallError(f"Failed to install {tool_name} CLI: {err}", step=STEP_INSTALL_CLI) from err
    console.print(f"[green]\u2705 {tool_name} CLI installed[/green]")
