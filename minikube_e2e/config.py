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

"""Scenario configuration, provisioning strategy selection, and config display."""

from __future__ import annotations

import platform
from dataclasses import dataclass
from typing import Any, Union

from pydantic import AliasChoices, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.panel import Panel

from minikube_e2e import console, logger
from minikube_e2e.constants import (
    CLUSTER_NAME_PATTERN,
    DEFAULT_ASSERTION_TIMEOUT_MS,
    DEFAULT_CLI_INSTALL_TIMEOUT_MS,
    DEFAULT_CLI_TOOL_NAME,
    DEFAULT_CLUSTER_CREATION_TIMEOUT_MS,
    DEFAULT_CLUSTER_NAME,
    DEFAULT_DRIVER,
    DEFAULT_EXTENSION_IMAGE,
    DEFAULT_EXTENSION_INSTALL_TIMEOUT_MS,
    DEFAULT_EXTENSION_LABEL,
    DEFAULT_EXTENSION_NAME,
    DEFAULT_POLL_INTERVAL_MS,
    DEFAULT_RECORDING_NAME,
    DEFAULT_TEARDOWN_TIMEOUT_MS,
    HOST_FACTORY_PATTERN,
    IMAGE_REFERENCE_PATTERN,
    PLATFORM_LINUX,
)
from minikube_e2e.errors import ConfigurationError


# ============================================================================
# Configuration class
# ============================================================================

class ScenarioConfig(BaseSettings):
    """Scenario configuration, auto-loaded from the CI environment.

    Resolved once at startup and read-only afterwards. Empty environment
    variables fall back to the defaults.

    Attributes:
        cluster_name: Name of the minikube cluster to create.
        node_name: Node expected to appear in the Nodes view (defaults to cluster_name).
        resource_name: Kubernetes resource entry removed on teardown (defaults to cluster_name).
        creation_timeout_ms: Budget for cluster creation.
        teardown_timeout_ms: Budget shared by all teardown steps.
        assertion_timeout_ms: Budget for a single resource state assertion.
        cli_install_timeout_ms: Budget for installing the CLI tool.
        extension_install_timeout_ms: Budget for the extension to show as installed.
        poll_interval_ms: Delay between polls of the host's state.
        driver: Provisioning driver for the non-interactive branch; empty means host default.
        extension_image: OCI image reference of the extension to install.
        extension_name: Display name of the installed extension.
        extension_label: Stable label identifying the installed extension.
        cli_tool_name: Display name of the CLI tool in the host's tool registry.
        skip_extension_install: Whether to skip extension and CLI installation.
        cli_preinstalled: Whether the runner ships the CLI tool already.
        cli_bundled_os: OS family whose CI runners bundle the CLI tool, or None.
        ci: Whether the scenario runs in continuous integration.
        runner_os: OS reported by the CI runner, or None.
        recording_name: Name used for the host's video and trace recordings.
        host_factory: ``module:attribute`` path of the HostApplication factory.
    """

    model_config = SettingsConfigDict(extra="ignore", env_ignore_empty=True, frozen=True, case_sensitive=True)

    cluster_name: str = Field(
        default=DEFAULT_CLUSTER_NAME,
        pattern=CLUSTER_NAME_PATTERN,
        validation_alias=AliasChoices("cluster_name", "CLUSTER_NAME"),
    )
    node_name: str | None = Field(default=None, validation_alias=AliasChoices("node_name", "MINIKUBE_NODE"))
    resource_name: str | None = Field(
        default=None, validation_alias=AliasChoices("resource_name", "RESOURCE_NAME")
    )
    creation_timeout_ms: int = Field(
        default=DEFAULT_CLUSTER_CREATION_TIMEOUT_MS,
        gt=0,
        validation_alias=AliasChoices("creation_timeout_ms", "CLUSTER_CREATION_TIMEOUT_MS"),
    )
    teardown_timeout_ms: int = Field(
        default=DEFAULT_TEARDOWN_TIMEOUT_MS,
        gt=0,
        validation_alias=AliasChoices("teardown_timeout_ms", "TEARDOWN_TIMEOUT_MS"),
    )
    assertion_timeout_ms: int = Field(
        default=DEFAULT_ASSERTION_TIMEOUT_MS,
        gt=0,
        validation_alias=AliasChoices("assertion_timeout_ms", "ASSERTION_TIMEOUT_MS"),
    )
    cli_install_timeout_ms: int = Field(
        default=DEFAULT_CLI_INSTALL_TIMEOUT_MS,
        gt=0,
        validation_alias=AliasChoices("cli_install_timeout_ms", "CLI_INSTALL_TIMEOUT_MS"),
    )
    extension_install_timeout_ms: int = Field(
        default=DEFAULT_EXTENSION_INSTALL_TIMEOUT_MS,
        gt=0,
        validation_alias=AliasChoices("extension_install_timeout_ms", "EXTENSION_INSTALL_TIMEOUT_MS"),
    )
    poll_interval_ms: int = Field(
        default=DEFAULT_POLL_INTERVAL_MS,
        ge=0,
        validation_alias=AliasChoices("poll_interval_ms", "POLL_INTERVAL_MS"),
    )
    driver: str = Field(
        default=DEFAULT_DRIVER,
        pattern=r"^[\w-]*$",
        validation_alias=AliasChoices("driver", "MINIKUBE_DRIVER_GHA", "MINIKUBE_DRIVER"),
    )
    extension_image: str | None = Field(
        default=DEFAULT_EXTENSION_IMAGE,
        pattern=IMAGE_REFERENCE_PATTERN,
        validation_alias=AliasChoices("extension_image", "EXTENSION_OCI_IMAGE"),
    )
    extension_name: str = DEFAULT_EXTENSION_NAME
    extension_label: str = DEFAULT_EXTENSION_LABEL
    cli_tool_name: str = DEFAULT_CLI_TOOL_NAME
    skip_extension_install: bool = Field(
        default=False,
        validation_alias=AliasChoices("skip_extension_install", "SKIP_EXTENSION_INSTALL"),
    )
    cli_preinstalled: bool = Field(
        default=False,
        validation_alias=AliasChoices("cli_preinstalled", "MINIKUBE_CLI_PREINSTALLED"),
    )
    cli_bundled_os: str | None = Field(
        default=None, validation_alias=AliasChoices("cli_bundled_os", "MINIKUBE_CLI_BUNDLED_OS")
    )
    # env names match exactly, so GITHUB_ACTIONS is consulted before CI
    ci: bool = Field(default=False, validation_alias=AliasChoices("ci", "GITHUB_ACTIONS", "CI"))
    runner_os: str | None = Field(default=None, validation_alias=AliasChoices("runner_os", "RUNNER_OS"))
    recording_name: str = DEFAULT_RECORDING_NAME
    host_factory: str | None = Field(
        default=None,
        pattern=HOST_FACTORY_PATTERN,
        validation_alias=AliasChoices("host_factory", "SCENARIO_HOST"),
    )

    @model_validator(mode="after")
    def _default_names(self) -> ScenarioConfig:
        # node and resource entries share the cluster's name unless told otherwise
        if self.node_name is None:
            object.__setattr__(self, "node_name", self.cluster_name)
        if self.resource_name is None:
            object.__setattr__(self, "resource_name", self.cluster_name)
        return self

    @property
    def os_family(self) -> str:
        """OS family of the runner, falling back to the local platform."""
        return (self.runner_os or platform.system()).lower()

    @property
    def extension_enabled(self) -> bool:
        """Whether the extension lifecycle is part of this scenario."""
        return not self.skip_extension_install and bool(self.extension_image)


# ============================================================================
# Provisioning strategy
# ============================================================================

@dataclass(frozen=True)
class Interactive:
    """Cluster creation with a human-in-the-loop confirmation, no explicit driver."""

    interactive: bool = True


@dataclass(frozen=True)
class NonInteractive:
    """Unattended cluster creation with an explicit driver.

    Attributes:
        driver: Provisioning driver; empty string means the host default.
    """

    driver: str = ""
    interactive: bool = False


ProvisioningStrategy = Union[Interactive, NonInteractive]


def select_strategy(config: ScenarioConfig) -> ProvisioningStrategy:
    """Pick the cluster creation branch from the platform facts.

    Args:
        config: Resolved scenario configuration.

    Returns:
        NonInteractive with the configured driver on Linux CI runners,
        Interactive everywhere else.
    """
    if config.ci and config.os_family == PLATFORM_LINUX:
        return NonInteractive(driver=config.driver)
    return Interactive()


def cli_install_skipped(config: ScenarioConfig) -> bool:
    """Whether platform policy says the CLI tool must not be installed.

    The tool counts as bundled on a designated runner (``cli_preinstalled``)
    and on CI runners of the OS family named by ``cli_bundled_os``.

    Args:
        config: Resolved scenario configuration.

    Returns:
        True when installation is skipped by flag or the runner bundles the tool.
    """
    if config.skip_extension_install or config.cli_preinstalled:
        return True
    return bool(config.ci and config.cli_bundled_os and config.os_family == config.cli_bundled_os.lower())


# ============================================================================
# Config resolution
# ============================================================================

def resolve_config(**overrides: Any) -> ScenarioConfig:
    """Merge CLI overrides, environment variables, and defaults into a ScenarioConfig.

    Resolution priority: CLI arguments > environment variables > defaults.
    Overrides set to None are ignored.

    Args:
        **overrides: Field values taken from the command line.

    Returns:
        The resolved, immutable ScenarioConfig.

    Raises:
        ConfigurationError: If any value is syntactically malformed.
    """
    updates = {key: value for key, value in overrides.items() if value is not None}
    try:
        config = ScenarioConfig(**updates)
    except ValidationError as err:
        problems = "; ".join(
            f"{'.'.join(str(loc) for loc in error['loc']) or 'config'}: {error['msg']}"
            for error in err.errors()
        )
        raise ConfigurationError(f"Invalid scenario configuration: {problems}") from err

    if config.skip_extension_install and "extension_image" in updates:
        logger.warning("Extension image is ignored because extension installation is skipped")
    if config.driver and isinstance(select_strategy(config), Interactive):
        logger.warning("Driver '%s' is ignored outside Linux CI (interactive creation)", config.driver)
    return config


# ============================================================================
# Display
# ============================================================================

def display_config(config: ScenarioConfig) -> None:
    """Print the configuration relevant to the steps that will run.

    Args:
        config: Resolved scenario configuration.
    """
    strategy = select_strategy(config)
    console.print(Panel.fit("Configuration", style="bold blue"))

    console.print("[yellow]Cluster:[/yellow]")
    console.print(f"  cluster_name     : {config.cluster_name}")
    console.print(f"  node_name        : {config.node_name}")
    console.print(f"  resource_name    : {config.resource_name}")
    console.print(f"  creation_timeout : {config.creation_timeout_ms}ms")
    console.print(f"  teardown_timeout : {config.teardown_timeout_ms}ms")
    if isinstance(strategy, NonInteractive):
        console.print(f"  strategy         : non-interactive (driver: {strategy.driver or '(host default)'})")
    else:
        console.print("  strategy         : interactive")

    console.print("[yellow]Platform:[/yellow]")
    console.print(f"  ci               : {config.ci}")
    console.print(f"  os_family        : {config.os_family}")
    if config.cli_bundled_os:
        console.print(f"  cli_bundled_os   : {config.cli_bundled_os}")

    if config.extension_enabled:
        console.print("[yellow]Extension:[/yellow]")
        console.print(f"  image            : {config.extension_image}")
        console.print(f"  label            : {config.extension_label}")
    else:
        console.print("[yellow]Extension:[/yellow] skipped")

    if cli_install_skipped(config):
        console.print("[yellow]CLI tool:[/yellow] skipped")
    else:
        console.print("[yellow]CLI tool:[/yellow]")
        console.print(f"  name             : {config.cli_tool_name}")
