"""Tests for the scheduler manager and the application wiring."""

import asyncio
import json

import pytest

from backup_service.config import ConfigManager, ConfigurationError, SyncConfig
from backup_service.core import AutoApprovePresenter, ConsolePresenter, IgnoreStore
from backup_service.main import BackupServiceApp
from backup_service.scheduler import CycleOutcome, SchedulerError, SchedulerManager

from conftest import write_file


async def wait_until(predicate, timeout=5.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("Condition not met in time")
        await asyncio.sleep(0.01)


def write_config(path, source, target, interval=60):
    path.write_text(json.dumps({
        "source": str(source),
        "target": str(target),
        "pollingInS": interval,
        "autoStart": False
    }))
    return path


@pytest.fixture
def manager(tmp_path, roots):
    source, target = roots
    config_file = write_config(tmp_path / "config.json", source, target)
    return SchedulerManager(
        config_manager=ConfigManager(config_file),
        presenter=AutoApprovePresenter(),
        ignore_store=IgnoreStore(tmp_path / "ignored_files.json")
    )


def first_cycle_done(manager):
    return manager.sync_scheduler.stats["run_count"] >= 1


class TestSchedulerManager:

    @pytest.mark.asyncio
    async def test_start_and_trigger(self, manager, roots):
        source, target = roots
        await manager.start()
        try:
            assert manager.is_running
            await wait_until(lambda: first_cycle_done(manager))

            write_file(source / "late.txt")
            result = await manager.trigger_sync()

            assert result.outcome == CycleOutcome.COMPLETED
            assert (target / "late.txt").exists()
            status = manager.get_status()
            assert status["presentation_open"] is False
            assert status["scheduler"]["run_count"] >= 2
        finally:
            await manager.stop()

        assert not manager.is_running
        assert manager.get_status()["scheduler"] is None

    @pytest.mark.asyncio
    async def test_apply_config_replaces_scheduler(self, manager, tmp_path):
        await manager.start()
        try:
            await wait_until(lambda: first_cycle_done(manager))
            previous = manager.sync_scheduler
            other_target = tmp_path / "other_backup"

            await manager.apply_config(SyncConfig(
                source=str(tmp_path / "data"), target=str(other_target), pollingInS=5
            ))

            assert manager.sync_scheduler is not previous
            assert not previous.is_running
            assert manager.sync_scheduler.interval_seconds == 5
            assert manager.sync_scheduler.presentation_slot is manager.presentation_slot
            await wait_until(lambda: first_cycle_done(manager))
            assert other_target.is_dir()
        finally:
            await manager.stop()

    @pytest.mark.asyncio
    async def test_reload_with_broken_file_keeps_scheduler(self, manager):
        await manager.start()
        try:
            await wait_until(lambda: first_cycle_done(manager))
            running = manager.sync_scheduler
            manager.config_manager.config_file.write_text("{oops")

            with pytest.raises(SchedulerError, match="reload"):
                await manager.reload_configuration()

            assert manager.sync_scheduler is running
            assert manager.is_running
        finally:
            await manager.stop()

    @pytest.mark.asyncio
    async def test_reload_picks_up_new_interval(self, manager, roots):
        source, target = roots
        await manager.start()
        try:
            await wait_until(lambda: first_cycle_done(manager))
            write_config(manager.config_manager.config_file, source, target, interval=7)

            await manager.reload_configuration()

            assert manager.sync_scheduler.interval_seconds == 7
        finally:
            await manager.stop()

    @pytest.mark.asyncio
    async def test_trigger_requires_running_manager(self, manager):
        with pytest.raises(SchedulerError):
            await manager.trigger_sync()


class TestBackupServiceApp:

    @pytest.mark.asyncio
    async def test_startup_without_config_writes_template(self, isolated_settings):
        app = BackupServiceApp()

        with pytest.raises(ConfigurationError):
            await app.startup()

        assert (isolated_settings / "config.json").exists()
        assert not app.running

    @pytest.mark.asyncio
    async def test_startup_and_shutdown(self, isolated_settings, roots, monkeypatch):
        source, target = roots
        monkeypatch.setenv("BACKUP_SERVICE_PRESENTER", "auto")
        isolated_settings.mkdir(parents=True)
        write_config(isolated_settings / "config.json", source, target)
        write_file(source / "a.txt")
        app = BackupServiceApp()

        await app.startup()
        try:
            assert app.running
            assert isinstance(app.scheduler_manager.presenter, AutoApprovePresenter)
            await wait_until(lambda: first_cycle_done(app.scheduler_manager))
        finally:
            await app.shutdown()

        assert not app.running
        assert (target / "a.txt").exists()
        assert (isolated_settings / "ignored_files.json").exists()

    def test_console_presenter_by_default(self, isolated_settings):
        app = BackupServiceApp()
        app.ignore_store = IgnoreStore(isolated_settings / "ignored_files.json")

        presenter = app._create_presenter()

        assert isinstance(presenter, ConsolePresenter)
        assert presenter.ignore_store is app.ignore_store
