"""End-to-end tests of AppController against the in-memory supervisor."""
from dataclasses import replace

import pytest

from conftest import make_world
from src.orchestration_core.errors import (
    NoWorldSelectedError,
    PortInUseError,
    UserInputError,
    ValidationError,
)
from src.server_manager_core.models import BackupInterval, NewWorldRequest
from src.server_manager_core.unit_files import backup_timer_name, parse_binding, server_unit_name


def _request(world, port=None, **overrides):
    values = dict(server_name=f"{world} Hall", world_name=world, port=port, password="odin123")
    values.update(overrides)
    return NewWorldRequest(**values)


def test_generate_world_binds_and_starts(controller, supervisor, server_installed):
    spec = controller.generate_world(_request("Alpha", crossplay=True))

    unit = server_unit_name("Alpha")
    assert spec.port == 2456
    assert spec.user == "valheim"
    assert unit in supervisor.enabled
    assert supervisor.is_active(unit)
    parsed = parse_binding(supervisor.read(unit))
    assert parsed.port == 2456 and parsed.crossplay
    assert [c[0] for c in supervisor.calls] == ["define", "reload", "enable", "start"]


def test_port_collision_leaves_no_binding(controller, supervisor, server_installed):
    """Beta asking for Alpha's port is refused before anything is written."""
    controller.generate_world(_request("Alpha", port=2456))
    with pytest.raises(PortInUseError):
        controller.generate_world(_request("Beta", port=2456))

    assert not supervisor.has_definition(server_unit_name("Beta"))
    assert controller.used_ports() == [2456]
    controller.generate_world(_request("Beta", port=2457))
    assert controller.used_ports() == [2456, 2457]


def test_generate_requires_server_binary(controller, supervisor):
    with pytest.raises(ValidationError):
        controller.generate_world(_request("Alpha"))
    assert supervisor.units == {}


@pytest.mark.parametrize("overrides", [
    {"password": "abc"},
    {"password": "Hall1", "server_name": "Alpha Hall1"},
    {"server_name": "  "},
    {"server_name": 'The "Hall"'},
])
def test_generate_rejects_bad_fields(controller, supervisor, server_installed, overrides):
    with pytest.raises(UserInputError):
        controller.generate_world(_request("Alpha", **overrides))
    assert supervisor.units == {}


def test_actions_need_a_selected_world(controller):
    with pytest.raises(NoWorldSelectedError):
        controller.start_server()
    with pytest.raises(NoWorldSelectedError):
        controller.create_backup()
    with pytest.raises(NoWorldSelectedError):
        controller.install_auto_backup(BackupInterval.HOURLY)
    assert controller.auto_backup_status() == "OFF"
    assert not controller.is_server_running()


def test_select_then_backup_and_restore(controller, paths, supervisor, server_installed):
    controller.generate_world(_request("Alpha"))
    make_world(paths["world_dir"], "Alpha", db=b"v1")
    controller.select_world(1)

    first = controller.create_backup()
    (paths["world_dir"] / "Alpha.db").write_bytes(b"v2")
    assert controller.list_backups() == [first]

    controller.restore_backup(first)
    assert (paths["world_dir"] / "Alpha.db").read_bytes() == b"v1"
    assert controller.is_server_running()


def test_restore_rejects_other_worlds_backup(controller, paths, server_installed):
    make_world(paths["world_dir"], "Alpha")
    make_world(paths["world_dir"], "Beta")
    beta_backup = controller.create_backup("Beta")
    controller.select_world(1)
    with pytest.raises(ValidationError):
        controller.restore_backup(beta_backup)


def test_auto_backup_through_controller(controller, paths, supervisor, tmp_path):
    make_world(paths["world_dir"], "Alpha")
    controller.select_world(1)

    controller.install_auto_backup(BackupInterval.EVERY_30_MINUTES)
    assert controller.auto_backup_status() == "ON (Every 30 minutes)"
    script = (paths["scripts_dir"] / "backup_Alpha.sh").read_text()
    assert str(tmp_path / "config" / "config.json") in script
    assert "/usr/bin/python3" in script

    controller.install_auto_backup(BackupInterval.HOURLY, replace=True)
    assert controller.auto_backup_status() == "ON (Every 1 hour)"
    assert controller.remove_auto_backup() is True
    assert not supervisor.has_definition(backup_timer_name("Alpha"))


def test_header(controller, paths, server_installed):
    header = controller.header()
    assert header.world == "" and header.running is None
    assert header.lan_ip == "192.168.1.10" and header.wan_ip == "203.0.113.7"

    controller.generate_world(_request("Alpha", port=2458))
    make_world(paths["world_dir"], "Alpha")
    controller.select_world(1)
    controller.create_backup()
    paths["log_dir"].mkdir(exist_ok=True)
    (paths["log_dir"] / "Alpha_server.log").write_text("registered with join code 424242\n")

    header = controller.header()
    assert header.world == "Alpha"
    assert header.running is True
    assert header.port == 2458
    assert header.join_code == "424242"
    assert header.auto_backup == "OFF"
    assert header.last_backup == "2024-01-05 09:00 AM"


def test_await_ready_after_start(controller, paths, server_installed):
    paths["log_dir"].mkdir(parents=True, exist_ok=True)
    (paths["log_dir"] / "Alpha_server.log").write_text("registered with join code 111111\n")
    controller.generate_world(_request("Alpha"))
    make_world(paths["world_dir"], "Alpha")
    with (paths["log_dir"] / "Alpha_server.log").open("a") as fh:
        fh.write("Opened Steam server\n")

    report = controller.await_ready("Alpha")
    assert report.mode == "steam"
    assert report.lan_address == "192.168.1.10:2456"


def test_delete_world_clears_selection(controller, paths, supervisor, server_installed):
    controller.generate_world(_request("Alpha"))
    make_world(paths["world_dir"], "Alpha")
    controller.select_world(1)
    controller.delete_world("Alpha")
    assert controller.selected_world() is None
    assert controller.list_worlds() == []
    assert supervisor.units == {}


def test_config_save_and_load(controller, tmp_path, paths):
    controller.save_state()
    controller.update_state(lambda s: replace(s, backup_dir="/elsewhere"))
    controller.load_state()
    assert controller.get_state().backup_dir == str(paths["backup_dir"])


def test_load_rejects_bad_polling(controller, tmp_path):
    controller.update_state(lambda s: replace(s, poll_attempts=0))
    controller.save_state()
    with pytest.raises(ValidationError):
        controller.load_state()


def test_state_is_handed_out_as_a_copy(controller, paths):
    """Only update_state/load_state change the live state."""
    state = controller.get_state()
    state.backup_dir = "/elsewhere"
    assert controller.get_state().backup_dir == str(paths["backup_dir"])

    updated = controller.update_state(lambda s: s)
    updated.log_dir = "/elsewhere"
    assert controller.get_state().log_dir == str(paths["log_dir"])
