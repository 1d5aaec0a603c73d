"""Tests for the per-world auto-backup timer."""
import os

import pytest

from src.server_manager_core.auto_backup import AutoBackupScheduler
from src.server_manager_core.errors import JobExistsError
from src.server_manager_core.models import BackupInterval
from src.server_manager_core.unit_files import backup_service_name, backup_timer_name

TIMER = backup_timer_name("Alpha")
SERVICE = backup_service_name("Alpha")


@pytest.fixture
def scheduler(supervisor, paths, log_fn, tmp_path):
    return AutoBackupScheduler(
        supervisor,
        paths["scripts_dir"],
        log_fn,
        python="/usr/bin/python3",
        app_root=tmp_path / "app",
        config_path=tmp_path / "app" / "src" / "config.json",
        user="valheim",
    )


def test_off_by_default(scheduler):
    assert not scheduler.has_job("Alpha")
    assert scheduler.status("Alpha") is None
    assert scheduler.describe("Alpha") == "OFF"


def test_install_defines_timer_service_and_script(scheduler, supervisor):
    scheduler.install("Alpha", BackupInterval.EVERY_30_MINUTES)

    assert scheduler.describe("Alpha") == "ON (Every 30 minutes)"
    assert scheduler.on_calendar("Alpha") == "*:0/30"
    assert "User=valheim" in supervisor.read(SERVICE)
    assert TIMER in supervisor.enabled and supervisor.is_active(TIMER)

    script = scheduler.script_path("Alpha")
    assert script.is_file()
    assert os.access(script, os.X_OK)
    assert "backup Alpha" in script.read_text()


def test_install_twice_requires_replace(scheduler):
    scheduler.install("Alpha", BackupInterval.HOURLY)
    with pytest.raises(JobExistsError):
        scheduler.install("Alpha", BackupInterval.EVERY_3_HOURS)
    assert scheduler.status("Alpha") is BackupInterval.HOURLY


def test_replace_leaves_one_timer(scheduler, supervisor):
    scheduler.install("Alpha", BackupInterval.HOURLY)
    scheduler.install("Alpha", BackupInterval.EVERY_3_HOURS, replace=True)

    assert supervisor.list_definitions("valheim_backup_Alpha*.timer") == [TIMER]
    assert scheduler.status("Alpha") is BackupInterval.EVERY_3_HOURS
    assert scheduler.describe("Alpha") == "ON (Every 3 hours)"


def test_existing_script_is_kept(scheduler):
    path = scheduler.script_path("Alpha")
    path.parent.mkdir(parents=True)
    path.write_text("#!/bin/bash\necho custom\n")
    scheduler.install("Alpha", BackupInterval.HOURLY)
    assert "custom" in path.read_text()


def test_unknown_interval_is_reported(scheduler, supervisor):
    supervisor.define(TIMER, "[Timer]\nOnCalendar=daily\n")
    assert scheduler.describe("Alpha") == "ON (Unknown Interval)"


def test_remove(scheduler, supervisor):
    scheduler.install("Alpha", BackupInterval.HOURLY)
    assert scheduler.remove("Alpha") is True

    assert not supervisor.has_definition(TIMER)
    assert not supervisor.has_definition(SERVICE)
    assert not scheduler.script_path("Alpha").exists()
    assert supervisor.calls[-1] == ("reset-failed", "")
    assert scheduler.describe("Alpha") == "OFF"


def test_remove_without_job(scheduler, supervisor):
    assert scheduler.remove("Alpha") is False
    assert supervisor.calls == []


def test_remove_carries_on_when_unit_files_cannot_be_removed(scheduler, supervisor, log_lines):
    scheduler.install("Alpha", BackupInterval.HOURLY)
    supervisor.fail_undefine = True

    assert scheduler.remove("Alpha") is True

    assert ("undefine", TIMER) in supervisor.calls
    assert ("undefine", SERVICE) in supervisor.calls
    assert not scheduler.script_path("Alpha").exists()
    assert supervisor.calls[-1] == ("reset-failed", "")
    assert f"[WARN] Could not remove {TIMER}." in log_lines


def test_replace_when_old_timer_cannot_be_removed(scheduler, supervisor, log_lines):
    scheduler.install("Alpha", BackupInterval.HOURLY)
    supervisor.fail_undefine = True

    scheduler.install("Alpha", BackupInterval.EVERY_30_MINUTES, replace=True)

    assert scheduler.status("Alpha") is BackupInterval.EVERY_30_MINUTES
    assert TIMER in supervisor.enabled
    assert any(line.startswith("[WARN] Could not remove") for line in log_lines)
