# tests/test_scheduler.py
from unittest.mock import MagicMock

from shopsync.errors import RemoteUnavailable, SyncAlreadyRunning
from shopsync.scheduler import create_scheduler, scheduled_sync


def test_interval_job_registered():
    orchestrator = MagicMock()
    scheduler = create_scheduler(orchestrator, 15)

    job = scheduler.get_job("catalog-sync")

    assert job is not None
    assert job.args == (orchestrator,)
    assert job.max_instances == 1
    assert job.trigger.interval.total_seconds() == 15 * 60


def test_scheduled_sync_runs_orchestrator():
    orchestrator = MagicMock()
    scheduled_sync(orchestrator)
    orchestrator.run_sync.assert_called_once_with()


def test_scheduled_sync_absorbs_run_errors():
    for error in (RemoteUnavailable("down"), SyncAlreadyRunning("busy")):
        orchestrator = MagicMock()
        orchestrator.run_sync.side_effect = error
        scheduled_sync(orchestrator)
