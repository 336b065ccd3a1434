"""Tests for the scheduled mirroring service loop."""

from unittest.mock import MagicMock, patch

import pytest

from discussion_mirror import service
from discussion_mirror.models import RunSummary


@pytest.fixture(autouse=True)
def reset_shutdown_flag(monkeypatch, tmp_path):
    monkeypatch.setattr(service, "SHUTDOWN_REQUESTED", False)
    monkeypatch.setattr(service, "HEALTH_FILE", tmp_path / "health")
    with patch("discussion_mirror.service.signal.signal"):
        yield


class TestRunCycle:
    def test_success(self, make_config):
        with patch("discussion_mirror.service.run_pipeline", return_value=RunSummary(stored=2)):
            assert service.run_cycle(make_config()) is True

    def test_failed_repositories_still_complete(self, make_config):
        summary = RunSummary()
        summary.failed_repos.append(MagicMock())
        with patch("discussion_mirror.service.run_pipeline", return_value=summary):
            assert service.run_cycle(make_config()) is True

    def test_locked_run_not_healthy(self, make_config):
        with patch(
            "discussion_mirror.service.run_pipeline",
            return_value=RunSummary(skipped_locked=True),
        ):
            assert service.run_cycle(make_config()) is False

    def test_crash_returns_false(self, make_config):
        with patch("discussion_mirror.service.run_pipeline", side_effect=RuntimeError("db gone")):
            assert service.run_cycle(make_config()) is False


class TestServe:
    def _stop_after_first_sleep(self):
        def fake_sleep(seconds):
            service.SHUTDOWN_REQUESTED = True

        return patch("discussion_mirror.service.time.sleep", side_effect=fake_sleep)

    def test_runs_on_start_and_writes_health(self, make_config):
        with patch(
            "discussion_mirror.service.run_cycle", return_value=True
        ) as mock_cycle, self._stop_after_first_sleep() as mock_sleep:
            service.serve(make_config(github_fetch_schedule="hourly"))

        mock_cycle.assert_called_once()
        mock_sleep.assert_called_once_with(1)
        assert service.HEALTH_FILE.read_text().isdigit()

    def test_skip_initial_run(self, make_config, monkeypatch):
        monkeypatch.setenv("DISCUSSION_MIRROR_SYNC_ON_START", "false")
        with patch(
            "discussion_mirror.service.run_cycle"
        ) as mock_cycle, self._stop_after_first_sleep():
            service.serve(make_config())
        mock_cycle.assert_not_called()

    def test_unhealthy_cycle_skips_health_file(self, make_config):
        with patch(
            "discussion_mirror.service.run_cycle", return_value=False
        ), self._stop_after_first_sleep():
            service.serve(make_config())
        assert not service.HEALTH_FILE.exists()

    def test_handle_signal_requests_shutdown(self):
        service.handle_signal(15, None)
        assert service.SHUTDOWN_REQUESTED is True
