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

"""Config subcommands (show)."""

from __future__ import annotations

import typer

from minikube_e2e import console
from minikube_e2e.config import display_config, resolve_config
from minikube_e2e.constants import EXIT_CONFIGURATION_ERROR
from minikube_e2e.errors import ConfigurationError

app = typer.Typer(help="Inspect the resolved scenario configuration.")


@app.command()
def show() -> None:
    """Print the configuration resolved from the environment."""
    try:
        config = resolve_config()
    except ConfigurationError as err:
        console.print(f"[red]\u274c {err}[/red]")
        raise typer.Exit(EXIT_CONFIGURATION_ERROR) from err
    display_config(config)
