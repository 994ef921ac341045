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

from __future__ import annotations

import pytest

from fakes import FakeHost
from minikube_e2e.errors import (
    ClusterCreationTimeout,
    ConfigurationError,
    ExtensionInstallError,
    SetupFailure,
    TeardownFailure,
)
from minikube_e2e.host import ResourceKind, ResourceState
from minikube_e2e.scenario import (
    Phase,
    ScenarioReport,
    ScenarioRunner,
    cleanup_leftovers,
    default_checks,
    run_scenario,
)
from minikube_e2e.verifier import ResourceStateQuery

IMAGE = "ghcr.io/podman-desktop/podman-desktop-extension-minikube:nightly"


def _runner(host, config, checks=None, sleep=None):
    return ScenarioRunner(host, config, checks, sleep=sleep or (lambda _: None))


def _teardown_calls(host):
    return [name for name in host.names() if name in ("delete_cluster", "remove_extension", "close")]


# ============================================================================
# Creation outcomes
# ============================================================================

def test_happy_path(host, make_config):
    """Extension, CLI, cluster, node Running, then cluster before extension on teardown."""
    config = make_config(skip_extension_install=False, extension_image=IMAGE)
    runner = _runner(host, config)
    report = runner.run()

    assert report.passed
    assert report.outcome == "passed"
    assert report.exit_code == 0
    assert runner.phase is Phase.DONE
    assert [c.query for c in report.checks] == [
        ResourceStateQuery(ResourceKind.NODES, "minikube", ResourceState.RUNNING)
    ]

    names = host.names()
    assert names[:2] == ["set_recording_name", "handle_welcome_page"]
    assert ("handle_welcome_page", True) in host.calls
    assert names.index("install_extension_from_oci_image") < names.index("ensure_cli_installed")
    assert names.index("ensure_cli_installed") < names.index("create_cluster")
    assert ("create_cluster", "minikube", True, 300_000, {}) in host.calls
    assert _teardown_calls(host) == ["delete_cluster", "remove_extension", "close"]
    assert not host.clusters
    assert not host.extensions


def test_setup_timeout_still_tears_down(make_config):
    host = FakeHost(create_error=TimeoutError("Timeout 300000ms exceeded"))
    runner = _runner(host, make_config())
    report = runner.run()

    assert isinstance(report.setup_error, ClusterCreationTimeout)
    assert report.outcome == "setup-failed"
    assert report.exit_code == 2
    assert report.checks == []
    assert "get_resource_state" not in host.names()
    assert _teardown_calls(host) == ["delete_cluster", "remove_extension", "close"]
    assert runner.phase is Phase.DONE


def test_skip_install(host, make_config):
    config = make_config(skip_extension_install=True)
    report = _runner(host, config).run()

    assert report.passed
    names = host.names()
    for call in ("open_extensions", "install_extension_from_oci_image", "open_cli_tools_settings",
                 "ensure_cli_installed", "get_installed_extension", "remove_extension"):
        assert call not in names
    assert ("create_cluster", "minikube", True, 300_000, {}) in host.calls
    assert _teardown_calls(host) == ["delete_cluster", "close"]


# ============================================================================
# Branch selection and CLI policy
# ============================================================================

def test_linux_ci_creates_non_interactively(host, make_config):
    config = make_config(ci=True, runner_os="Linux", driver="")
    _runner(host, config).run()
    assert ("create_cluster", "minikube", False, 300_000, {"driver": ""}) in host.calls


def test_preinstalled_cli_is_not_installed(host, make_config):
    report = _runner(host, make_config(cli_preinstalled=True)).run()
    assert report.passed
    assert "ensure_cli_installed" not in host.names()
    assert "install_extension_from_oci_image" in host.names()


def test_cluster_deleted_with_creation_triple(host, make_config):
    config = make_config(cluster_name="e2e", node_name="e2e-node", resource_name="e2e-res")
    _runner(host, config).run()
    deletes = [call for call in host.calls if call[0] == "delete_cluster"]
    assert len(deletes) == 1
    assert deletes[0][1:4] == ("e2e-res", "e2e-node", "e2e")


# ============================================================================
# Teardown guarantees
# ============================================================================

def test_extension_install_failure_skips_removal(make_config):
    host = FakeHost(extensions={"redhat.minikube"})
    report = _runner(host, make_config()).run()

    assert isinstance(report.setup_error, ExtensionInstallError)
    assert "create_cluster" not in host.names()
    assert "remove_extension" not in host.names()
    assert _teardown_calls(host) == ["close"]
    assert host.extensions == {"redhat.minikube"}


def test_late_extension_install_is_removed_on_teardown(make_config):
    host = FakeHost(extension_appears=False)
    runner = _runner(host, make_config(extension_install_timeout_ms=1))
    with pytest.raises(ExtensionInstallError, match="Timed out"):
        runner.setup()
    assert runner.extension is None
    assert runner.pending_extension is not None

    # the host finishes installing after the wait gave up
    host.extensions.add("redhat.minikube")
    failures = runner.teardown()

    assert failures == []
    assert ("get_installed_extension", "minikube", "redhat.minikube") in host.calls
    assert _teardown_calls(host) == ["remove_extension", "close"]
    assert not host.extensions


def test_extension_that_never_installs_is_left_alone(make_config):
    host = FakeHost(extension_appears=False)
    report = _runner(host, make_config(extension_install_timeout_ms=1)).run()

    assert isinstance(report.setup_error, ExtensionInstallError)
    assert report.teardown_failures == []
    assert "get_installed_extension" not in host.names()
    assert _teardown_calls(host) == ["close"]


def test_cluster_deletion_failure_does_not_block_extension_removal(make_config):
    host = FakeHost(delete_error=RuntimeError("delete button not found"))
    report = _runner(host, make_config()).run()

    assert report.passed
    assert report.leaked_resources
    assert report.exit_code == 3
    assert [f.step for f in report.teardown_failures] == ["delete-cluster"]
    assert _teardown_calls(host) == ["delete_cluster", "remove_extension", "close"]
    assert not host.extensions


def test_every_teardown_step_failing_is_reported(make_config):
    host = FakeHost(
        delete_error=RuntimeError("delete failed"),
        remove_error=RuntimeError("remove failed"),
        close_error=RuntimeError("close failed"),
    )
    report = _runner(host, make_config()).run()

    assert [f.step for f in report.teardown_failures] == [
        "delete-cluster", "remove-extension", "release-context",
    ]
    assert all(isinstance(f, TeardownFailure) for f in report.teardown_failures)
    assert report.teardown_failures[0].cause.args == ("delete failed",)


def test_teardown_failure_does_not_mask_setup_failure(make_config):
    host = FakeHost(create_error=RuntimeError("no driver"), delete_error=RuntimeError("nothing to delete"))
    report = _runner(host, make_config()).run()
    assert report.outcome == "setup-failed"
    assert report.exit_code == 2
    assert report.leaked_resources


@pytest.mark.parametrize(
    ("ticks", "delete_timeout", "remove_timeout"),
    [
        ([100.0, 100.0, 104.0], 10_000, 6.0),
        ([100.0, 150.0, 200.0], 1, 0.001),
    ],
)
def test_teardown_budget_is_shared_across_steps(make_config, monkeypatch, ticks, delete_timeout, remove_timeout):
    removals = []
    monkeypatch.setattr(
        "minikube_e2e.scenario.remove_extension",
        lambda host, record, **kwargs: removals.append(kwargs["timeout"]),
    )
    clock = iter(ticks)
    host = FakeHost()
    runner = ScenarioRunner(
        host, make_config(teardown_timeout_ms=10_000), sleep=lambda _: None, clock=lambda: next(clock)
    )
    report = runner.run()

    assert report.teardown_failures == []
    assert [call[4] for call in host.calls if call[0] == "delete_cluster"] == [delete_timeout]
    assert removals == [remove_timeout]


def test_unexpected_init_error_becomes_setup_failure(make_config, monkeypatch):
    host = FakeHost()

    def broken(skip):
        raise RuntimeError("welcome page did not load")

    monkeypatch.setattr(host, "handle_welcome_page", broken)
    report = _runner(host, make_config()).run()

    assert isinstance(report.setup_error, SetupFailure)
    assert report.setup_error.step == "init"
    assert _teardown_calls(host) == ["close"]


# ============================================================================
# RUN phase
# ============================================================================

def test_failing_check_does_not_stop_siblings(make_config):
    host = FakeHost(node_states=["Stopped"])
    checks = [
        ResourceStateQuery(ResourceKind.NODES, "minikube", ResourceState.RUNNING),
        ResourceStateQuery(ResourceKind.PODS, "coredns", ResourceState.RUNNING),
        ResourceStateQuery(ResourceKind.NODES, "minikube", ResourceState.STOPPED),
    ]
    report = _runner(host, make_config(assertion_timeout_ms=1), checks).run()

    assert [c.passed for c in report.checks] == [False, False, True]
    assert report.outcome == "assertion-failed"
    assert report.exit_code == 1
    assert _teardown_calls(host)[-1] == "close"


def test_check_eventually_passes(make_config):
    host = FakeHost(node_states=["Starting", "Starting", "Running"])
    report = _runner(host, make_config()).run()
    assert report.passed


def test_verify_outside_run_phase(host, make_config):
    runner = _runner(host, make_config())
    with pytest.raises(RuntimeError):
        runner.verify(default_checks(runner.config)[0])


# ============================================================================
# Phase machine and session
# ============================================================================

def test_phases_enter_once(host, make_config):
    runner = _runner(host, make_config())
    runner.run()
    with pytest.raises(RuntimeError, match="Cannot enter phase"):
        runner.run()


def test_session_yields_in_run_phase(host, make_config):
    runner = _runner(host, make_config())
    with runner.session() as scenario:
        assert scenario.phase is Phase.RUN
        scenario.verify(default_checks(runner.config)[0])
    assert runner.phase is Phase.DONE
    assert _teardown_calls(host) == ["delete_cluster", "remove_extension", "close"]


def test_session_tears_down_when_body_raises(host, make_config):
    runner = _runner(host, make_config())
    with pytest.raises(ValueError):
        with runner.session():
            raise ValueError("test body failed")
    assert _teardown_calls(host) == ["delete_cluster", "remove_extension", "close"]


def test_session_raises_setup_failure_after_teardown(make_config):
    host = FakeHost(create_error=TimeoutError("too slow"))
    runner = _runner(host, make_config())
    with pytest.raises(ClusterCreationTimeout):
        with runner.session():
            pytest.fail("body must not run")
    assert runner.phase is Phase.DONE
    assert "delete_cluster" in host.names()


def test_session_surfaces_teardown_failure(make_config):
    host = FakeHost(delete_error=RuntimeError("stuck"))
    runner = _runner(host, make_config())
    with pytest.raises(TeardownFailure, match="delete-cluster"):
        with runner.session():
            pass
    assert "remove_extension" in host.names()


# ============================================================================
# Report and entry points
# ============================================================================

def test_empty_report_passes():
    report = ScenarioReport()
    assert report.passed
    assert not report.leaked_resources
    assert report.exit_code == 0


def test_run_scenario_requires_host(make_config):
    with pytest.raises(ConfigurationError, match="SCENARIO_HOST"):
        run_scenario(make_config())


def test_run_scenario_builds_host_from_factory(make_config):
    import fakes

    report = run_scenario(make_config(host_factory="fakes:build_fake_host"))
    assert report.passed
    assert fakes.LAST_HOST.names()[-1] == "close"


def test_cleanup_leftovers(make_config):
    host = FakeHost(extensions={"redhat.minikube"})
    host.clusters.add("minikube")
    failures = cleanup_leftovers(host, make_config(), sleep=lambda _: None)

    assert failures == []
    assert not host.clusters
    assert not host.extensions
    assert _teardown_calls(host) == ["delete_cluster", "remove_extension", "close"]


def test_cleanup_leftovers_without_extension(make_config):
    host = FakeHost(delete_error=RuntimeError("no such cluster"))
    failures = cleanup_leftovers(host, make_config(), sleep=lambda _: None)

    assert [f.step for f in failures] == ["delete-cluster"]
    assert "remove_extension" not in host.names()
    assert host.names()[-1] == "close"
