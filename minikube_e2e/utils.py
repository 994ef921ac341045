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

"""Utility functions for bounded waits and host factory loading."""

from __future__ import annotations

import importlib
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

from tenacity import RetryError, Retrying, retry_if_result, stop_after_delay, wait_fixed

from minikube_e2e.errors import ConfigurationError, WaitTimeout

if TYPE_CHECKING:
    from minikube_e2e.config import ScenarioConfig
    from minikube_e2e.host import HostApplication

T = TypeVar("T")


def ms_to_seconds(value_ms: int) -> float:
    """Convert a millisecond budget to seconds."""
    return value_ms / 1000


def await_condition(
    probe: Callable[[], T],
    predicate: Callable[[T], bool],
    *,
    timeout: float,
    interval: float,
    description: str,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Poll *probe* until *predicate* accepts its result or *timeout* elapses.

    The probe is always called at least once, so a zero timeout performs a
    single check. Exceptions raised by the probe are not retried.

    Args:
        probe: Callable returning the currently observed value.
        predicate: Returns True when the observed value is acceptable.
        timeout: Overall budget in seconds.
        interval: Delay in seconds between polls.
        description: Name of the awaited condition, used in the timeout error.
        sleep: Sleep function between polls.

    Returns:
        The first observed value accepted by *predicate*.

    Raises:
        WaitTimeout: If the condition did not hold within *timeout*.
    """
    retrying = Retrying(
        stop=stop_after_delay(timeout),
        wait=wait_fixed(interval),
        retry=retry_if_result(lambda observed: not predicate(observed)),
        sleep=sleep,
    )
    try:
        return retrying(probe)
    except RetryError as err:
        raise WaitTimeout(description, timeout, err.last_attempt.result()) from None


def load_host(path: str, config: ScenarioConfig) -> HostApplication:
    """Import a ``module:attribute`` host factory and build the host with it.

    Args:
        path: Import path of a callable accepting the resolved ScenarioConfig.
        config: Resolved scenario configuration.

    Returns:
        The HostApplication returned by the factory.

    Raises:
        ConfigurationError: If the path cannot be imported or is not callable.
    """
    module_name, _, attr_path = path.partition(":")
    if not module_name or not attr_path:
        raise ConfigurationError(f"Host factory '{path}' must look like 'package.module:factory'")
    try:
        target: Any = importlib.import_module(module_name)
        for attr in attr_path.split("."):
            target = getattr(target, attr)
    except (ImportError, AttributeError) as err:
        raise ConfigurationError(f"Cannot load host factory '{path}': {err}") from err
    if not callable(target):
        raise ConfigurationError(f"Host factory '{path}' is not callable")
    return target(config)
