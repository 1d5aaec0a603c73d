"""Tests for server start/stop polling, status and readiness detection."""
import pytest

from src.server_manager_core.errors import NotFoundError
from src.server_manager_core.models import ServiceState
from src.server_manager_core.service_controller import JOIN_TAIL_BYTES
from src.server_manager_core.unit_files import server_unit_name

UNIT = server_unit_name("Alpha")


@pytest.fixture
def bound(supervisor):
    supervisor.define(UNIT, "[Service]\n")
    return supervisor


def test_start_and_stop(service, bound):
    assert service.start("Alpha") is True
    assert service.is_running("Alpha")
    assert service.stop("Alpha") is True
    assert not service.is_running("Alpha")


def test_start_exhaustion_warns(service, bound, log_lines):
    """A unit that never turns active is a warning, not an exception."""
    bound.start_activates = False
    assert service.start("Alpha") is False
    assert any(line.startswith("[WARN]") and "did not become active" in line for line in log_lines)


def test_stop_exhaustion_warns(service, bound, log_lines):
    bound.active.add(UNIT)
    bound.stop_deactivates = False
    assert service.stop("Alpha") is False
    assert any(line.startswith("[WARN]") for line in log_lines)


def test_start_without_binding(service, supervisor):
    with pytest.raises(NotFoundError):
        service.start("Alpha")
    with pytest.raises(NotFoundError):
        service.stop("Alpha")
    assert supervisor.calls == []


def test_status_reports_states(service, bound):
    status = service.status("Alpha")
    assert status.state is ServiceState.INACTIVE
    assert status.changed_at == f"InactiveEnterTimestamp@{UNIT}"

    bound.active.add(UNIT)
    status = service.status("Alpha")
    assert status.is_active
    assert status.changed_at == f"ActiveEnterTimestamp@{UNIT}"
    assert status.last_restart == f"ExecMainStartTimestamp@{UNIT}"


def test_status_not_found(service, log_lines):
    assert service.status("Alpha").state is ServiceState.NOT_FOUND
    assert any(line.startswith("[ERROR]") for line in log_lines)


def _write_log(paths, text):
    paths["log_dir"].mkdir(exist_ok=True)
    path = paths["log_dir"] / "Alpha_server.log"
    with path.open("a", encoding="utf-8") as fh:
        fh.write(text)
    return path


def test_await_ready_crossplay(service, paths):
    _write_log(paths, "Session \"x\" registered with join code 123456\n")
    report = service.await_ready("Alpha", 2457, timeout_seconds=3)
    assert report.mode == "crossplay"
    assert report.join_code == "123456"
    assert report.ready


def test_await_ready_steam_only(service, paths):
    _write_log(paths, "Game server connected\nOpened Steam server\n")
    report = service.await_ready("Alpha", 2457, timeout_seconds=3)
    assert report.mode == "steam"
    assert report.lan_address == "192.168.1.10:2457"
    assert report.wan_address == "203.0.113.7:2457"


def test_await_ready_fallback_after_timeout(service, paths):
    _write_log(paths, "Loading world...\n")
    report = service.await_ready("Alpha", 2456, timeout_seconds=3)
    assert report.mode == "fallback"
    assert not report.ready
    assert report.lan_address == "192.168.1.10:2456"


def test_await_ready_ignores_previous_runs(service, paths):
    """A join code left over from an earlier run is not mistaken for readiness."""
    _write_log(paths, "registered with join code 111111\n")
    offset = service.log_offset("Alpha")
    _write_log(paths, "Opened Steam server\n")

    report = service.await_ready("Alpha", 2456, timeout_seconds=3, start_offset=offset)
    assert report.mode == "steam"


def test_current_join_code_uses_latest(service, paths):
    assert service.current_join_code("Alpha") == ""
    _write_log(paths, "registered with join code 111111\nregistered with join code 222222\n")
    assert service.current_join_code("Alpha") == "222222"


def test_current_join_code_reads_only_the_log_tail(service, paths):
    """A long-running server log is not re-read from the start on every header render."""
    padding = "Zone loaded\n" * (JOIN_TAIL_BYTES // 12 + 100)
    _write_log(paths, "registered with join code 111111\n" + padding)
    assert service.current_join_code("Alpha") == ""

    _write_log(paths, "registered with join code 333333\n")
    assert service.current_join_code("Alpha") == "333333"


def test_poll_sleeps_between_attempts(supervisor, log_fn, paths, network, fast_policy):
    from src.server_manager_core.service_controller import ServiceController

    sleeps = []
    supervisor.define(UNIT, "[Service]\n")
    supervisor.start_activates = False
    ctl = ServiceController(supervisor, log_fn, log_dir=paths["log_dir"], policy=fast_policy, network=network, sleep=sleeps.append)
    ctl.start("Alpha")
    assert len(sleeps) == fast_policy.attempts - 1
