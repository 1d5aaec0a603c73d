"""Shared fixtures: an in-memory systemd, a canned network, and tmp_path layouts."""
import fnmatch
from dataclasses import replace
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from src.orchestration_core import AppController
from src.server_manager_core import (
    BackupManager,
    RetryPolicy,
    ServiceController,
    SessionStore,
    WorldRegistry,
)
from src.server_manager_core.constants import SERVER_BINARY
from src.server_manager_core.errors import ExternalToolFailure


class FakeSupervisor:
    """
    Stands in for SystemdSupervisor. Unit files live in a dict; a unit is
    "known to systemd" as soon as it is defined. Every mutating call is
    appended to `calls` so tests can assert ordering.
    """

    def __init__(self):
        self.units = {}
        self.active = set()
        self.enabled = set()
        self.calls = []
        self.start_activates = True
        self.stop_deactivates = True
        self.fail_undefine = False

    def unit_path(self, name):
        return Path("/fake/units") / name

    def define(self, name, text):
        self.calls.append(("define", name))
        self.units[name] = text
        return self.unit_path(name)

    def undefine(self, name):
        self.calls.append(("undefine", name))
        if self.fail_undefine:
            raise ExternalToolFailure(f"Could not remove {name}.")
        self.units.pop(name, None)
        self.enabled.discard(name)

    def has_definition(self, name):
        return name in self.units

    def read(self, name):
        return self.units.get(name, "")

    def list_definitions(self, pattern):
        return sorted(n for n in self.units if fnmatch.fnmatch(n, pattern))

    def reload(self):
        self.calls.append(("reload", ""))

    def remove_failed_record(self):
        self.calls.append(("reset-failed", ""))

    def enable(self, name, now=False):
        self.calls.append(("enable", name))
        self.enabled.add(name)
        if now:
            self.active.add(name)

    def disable(self, name, now=False):
        self.calls.append(("disable", name))
        self.enabled.discard(name)
        if now:
            self.active.discard(name)

    def start(self, name):
        self.calls.append(("start", name))
        if name not in self.units:
            raise ExternalToolFailure(f"Unit {name} not found.")
        if self.start_activates:
            self.active.add(name)

    def stop(self, name):
        self.calls.append(("stop", name))
        if self.stop_deactivates:
            self.active.discard(name)

    def is_active(self, name):
        return name in self.active

    def exists(self, name):
        return name in self.units

    def show_timestamp(self, name, field):
        return f"{field}@{name}" if name in self.units else ""


class FakeNetwork:
    def __init__(self, lan="192.168.1.10", wan="203.0.113.7"):
        self.lan = lan
        self.wan = wan

    def lan_ip(self):
        return self.lan

    def public_ip(self, timeout=5.0):
        return self.wan

    def download_file(self, url, dest_path):
        return False


class StepClock:
    """Each call returns a time one minute later than the last."""

    def __init__(self, start=datetime(2024, 1, 5, 9, 0)):
        self.now = start

    def __call__(self):
        current = self.now
        self.now = current + timedelta(minutes=1)
        return current


def no_sleep(_seconds):
    return None


def make_world(world_dir, name, db=b"db-bytes", fwl=b"fwl-bytes"):
    world_dir.mkdir(parents=True, exist_ok=True)
    (world_dir / f"{name}.db").write_bytes(db)
    (world_dir / f"{name}.fwl").write_bytes(fwl)


@pytest.fixture
def log_lines():
    return []


@pytest.fixture
def log_fn(log_lines):
    return log_lines.append


@pytest.fixture
def paths(tmp_path):
    layout = {
        "valheim_dir": tmp_path / "valheim_server",
        "save_dir": tmp_path / "valheim_server" / "valheim_data",
        "world_dir": tmp_path / "valheim_server" / "valheim_data" / "worlds_local",
        "backup_dir": tmp_path / "backups",
        "log_dir": tmp_path / "logs",
        "scripts_dir": tmp_path / "scripts",
        "steamcmd_dir": tmp_path / "steamcmd",
        "app_dir": tmp_path / "app" / "src",
    }
    layout["world_dir"].mkdir(parents=True)
    layout["app_dir"].mkdir(parents=True)
    return layout


@pytest.fixture
def supervisor():
    return FakeSupervisor()


@pytest.fixture
def network():
    return FakeNetwork()


@pytest.fixture
def session(tmp_path):
    return SessionStore(tmp_path / "last_session.txt")


@pytest.fixture
def fast_policy():
    return RetryPolicy(attempts=3, delay_seconds=0)


@pytest.fixture
def registry(paths, supervisor, session, log_fn):
    return WorldRegistry(
        paths["world_dir"],
        supervisor,
        session,
        log_fn,
        backup_dir=paths["backup_dir"],
        log_dir=paths["log_dir"],
        scripts_dir=paths["scripts_dir"],
    )


@pytest.fixture
def service(supervisor, log_fn, paths, fast_policy, network):
    return ServiceController(
        supervisor,
        log_fn,
        log_dir=paths["log_dir"],
        policy=fast_policy,
        network=network,
        sleep=no_sleep,
    )


@pytest.fixture
def backups(paths, log_fn):
    return BackupManager(paths["world_dir"], paths["backup_dir"], log_fn, clock=StepClock())


def build_controller(paths, supervisor, network, log_fn, tmp_path):
    ctl = AppController(
        paths["app_dir"],
        log_fn,
        config_path=tmp_path / "config" / "config.json",
        supervisor=supervisor,
        network=network,
        sleep=no_sleep,
        clock=StepClock(),
    )
    ctl.update_state(lambda s: replace(
        s,
        valheim_dir=str(paths["valheim_dir"]),
        save_dir=str(paths["save_dir"]),
        world_dir=str(paths["world_dir"]),
        backup_dir=str(paths["backup_dir"]),
        log_dir=str(paths["log_dir"]),
        scripts_dir=str(paths["scripts_dir"]),
        steamcmd_dir=str(paths["steamcmd_dir"]),
        run_as_user="valheim",
        python_executable="/usr/bin/python3",
        poll_attempts=3,
        poll_delay_seconds=0,
        ready_timeout_seconds=3,
    ))
    return ctl


@pytest.fixture
def controller(paths, supervisor, network, log_fn, tmp_path):
    return build_controller(paths, supervisor, network, log_fn, tmp_path)


@pytest.fixture
def server_installed(paths):
    paths["valheim_dir"].mkdir(parents=True, exist_ok=True)
    (paths["valheim_dir"] / SERVER_BINARY).write_text("#!/bin/sh\n")
    return paths["valheim_dir"] / SERVER_BINARY
