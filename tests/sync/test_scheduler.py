"""Tests for AutoSyncScheduler."""

from unittest.mock import MagicMock, patch

import pytest

from shared_types import SyncStatus
from sync.scheduler import JOB_ID, AutoSyncScheduler


@pytest.fixture
def mock_service():
    svc = MagicMock()
    svc.closed = False
    svc.sync_status = SyncStatus.PENDING
    return svc


class TestTick:
    def test_syncs_when_pending(self, mock_service):
        record = AutoSyncScheduler(mock_service).tick()
        mock_service.refresh.assert_called_once()
        mock_service.sync_now.assert_called_once()
        assert record is mock_service.sync_now.return_value

    def test_noop_when_synced(self, mock_service):
        mock_service.sync_status = SyncStatus.SYNCED
        assert AutoSyncScheduler(mock_service).tick() is None
        mock_service.sync_now.assert_not_called()

    def test_noop_when_closed(self, mock_service):
        mock_service.closed = True
        assert AutoSyncScheduler(mock_service).tick() is None
        mock_service.refresh.assert_not_called()

    def test_real_service_round(self, service):
        service.update_preference("social", "travelStyle", "solo")
        scheduler = AutoSyncScheduler(service)
        assert scheduler.tick().changes_applied == 1
        assert scheduler.tick() is None
        assert len(service.sync_history) == 1


class TestLifecycle:
    def test_start_registers_interval_job(self, mock_service):
        scheduler = AutoSyncScheduler(mock_service, interval_minutes=2)
        with patch.object(scheduler, "scheduler") as bg:
            bg.running = False
            scheduler.start()
        kwargs = bg.add_job.call_args.kwargs
        assert kwargs["id"] == JOB_ID
        assert kwargs["max_instances"] == 1
        assert kwargs["coalesce"] is True
        bg.add_listener.assert_called_once()
        bg.start.assert_called_once()

    def test_start_and_stop(self, mock_service):
        scheduler = AutoSyncScheduler(mock_service, interval_minutes=60)
        scheduler.start()
        try:
            assert scheduler.running
            assert scheduler.scheduler.get_job(JOB_ID) is not None
        finally:
            scheduler.stop()
        assert not scheduler.running

    def test_stop_when_not_started(self, mock_service):
        AutoSyncScheduler(mock_service).stop()

    def test_error_handler_calls_callback(self, mock_service):
        on_error = MagicMock()
        scheduler = AutoSyncScheduler(mock_service, on_error=on_error)
        event = MagicMock(job_id=JOB_ID, exception=RuntimeError("boom"), traceback="tb")
        scheduler._error_handler(event)
        on_error.assert_called_once_with(event)

    def test_error_callback_failure_swallowed(self, mock_service):
        scheduler = AutoSyncScheduler(mock_service, on_error=MagicMock(side_effect=RuntimeError))
        scheduler._error_handler(MagicMock(job_id=JOB_ID, exception=None, traceback=None))
