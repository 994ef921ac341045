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

"""Extension installation from an OCI image and removal on teardown."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from rich.panel import Panel

from minikube_e2e import console
from minikube_e2e.constants import STEP_INSTALL_EXTENSION
from minikube_e2e.errors import ExtensionInstallError, ExtensionRemovalError, WaitTimeout
from minikube_e2e.host import HostApplication
from minikube_e2e.utils import await_condition


@dataclass(frozen=True)
class ExtensionRecord:
    """An extension installed by this scenario.

    Attributes:
        name: Display name on the extensions page.
        label: Stable identifier of the extension.
        image: OCI image reference it was installed from.
    """

    name: str
    label: str
    image: str


def install_extension(
    host: HostApplication,
    image: str,
    *,
    name: str,
    label: str,
    timeout: float,
    interval: float,
    sleep: Callable[[float], None] = time.sleep,
) -> ExtensionRecord:
    """Install an extension from an OCI image and wait for it to show as installed.

    An extension that is already installed is a precondition violation: the
    scenario would otherwise remove something it does not own.

    Args:
        host: Host application driver.
        image: OCI image reference to install from.
        name: Display name of the extension.
        label: Stable label used to detect the installed extension.
        timeout: Seconds to wait for the installed state.
        interval: Seconds between polls.
        sleep: Sleep function between polls.

    Returns:
        Record of the installed extension, to be handed to remove_extension.

    Raises:
        ExtensionInstallError: If already installed, the install fails, or it times out.
            Once the host has been asked to install, the error carries the
            pending record so the caller can still clean up a late install.
    """
    console.print(Panel.fit(f"Installing extension {label}", style="bold blue"))
    console.print(f"[yellow]Image: {image}[/yellow]")
    host.open_extensions()
    if host.extension_is_installed(label):
        raise ExtensionInstallError(
            f"Extension '{label}' is already installed; refusing to install over it",
            step=STEP_INSTALL_EXTENSION,
        )

    record = ExtensionRecord(name=name, label=label, image=image)
    try:
        host.install_extension_from_oci_image(image)
        await_condition(
            lambda: host.extension_is_installed(label),
            bool,
            timeout=timeout,
            interval=interval,
            description=f"extension '{label}' to be installed",
            sleep=sleep,
        )
    except WaitTimeout as err:
        raise ExtensionInstallError(str(err), step=STEP_INSTALL_EXTENSION, record=record) from err
    except Exception as err:
        raise ExtensionInstallError(
            f"Failed to install extension from {image}: {err}", step=STEP_INSTALL_EXTENSION, record=record
        ) from err

    console.print(f"[green]\u2705 Extension '{label}' installed[/green]")
    return record


def remove_extension(
    host: HostApplication,
    record: ExtensionRecord,
    *,
    timeout: float,
    interval: float,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Remove an extension previously installed by install_extension.

    Args:
        host: Host application driver.
        record: Record returned by install_extension.
        timeout: Seconds to wait for the extension to disappear.
        interval: Seconds between polls.
        sleep: Sleep function between polls.

    Raises:
        ExtensionRemovalError: If the extension cannot be found or is still installed.
    """
    console.print(f"[yellow]\u2139\ufe0f  Removing extension '{record.label}'...[/yellow]")
    host.open_extensions()
    handle = host.get_installed_extension(record.name, record.label)
    if handle is None:
        raise ExtensionRemovalError(f"Installed extension '{record.label}' not found")
    handle.remove_extension()
    try:
        await_condition(
            lambda: host.extension_is_installed(record.label),
            lambda installed: not installed,
            timeout=timeout,
            interval=interval,
            description=f"extension '{record.label}' to be removed",
            sleep=sleep,
        )
    except WaitTimeout as err:
        raise ExtensionRemovalError(str(err)) from err
    console.print(f"[green]\u2705 Extension '{record.label}' removed[/green]")


def remove_extension_if_installed(
    host: HostApplication,
    record: ExtensionRecord,
    *,
    timeout: float,
    interval: float,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Remove an extension whose installation was triggered but never confirmed.

    Args:
        host: Host application driver.
        record: Pending record carried by ExtensionInstallError.
        timeout: Seconds to wait for the extension to disappear.
        interval: Seconds between polls.
        sleep: Sleep function between polls.

    Returns:
        True if the extension was present and has been removed.

    Raises:
        ExtensionRemovalError: If the extension is present but does not go away.
    """
    host.open_extensions()
    if not host.extension_is_installed(record.label):
        console.print(f"[yellow]\u2139\ufe0f  Extension '{record.label}' not installed[/yellow]")
        return False
    remove_extension(host, record, timeout=timeout, interval=interval, sleep=sleep)
    return True
