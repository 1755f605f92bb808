import pytest
from src.monitoring.metrics import MetricsTracker

@pytest.fixture
def metrics_tracker():
    return MetricsTracker(max_errors=2)

class TestMetricsTracker:
    def test_metrics_recording(self, metrics_tracker):
        metrics_tracker.record('messages_sent')
        metrics_tracker.record('messages_sent', 2)
        metrics_tracker.record('custom')

        assert metrics_tracker.get('messages_sent') == 3
        assert metrics_tracker.get('custom') == 1
        assert metrics_tracker.get('never_recorded') == 0

    def test_errors_are_capped(self, metrics_tracker):
        for i in range(3):
            metrics_tracker.record_error('compile_failed', f"error {i}")

        assert [e.message for e in metrics_tracker.errors] == ["error 1", "error 2"]

    def test_snapshot(self, metrics_tracker):
        metrics_tracker.record('pings_sent')
        snapshot = metrics_tracker.snapshot()

        assert snapshot['counters']['pings_sent'] == 1
        assert snapshot['errors'] == []
        assert snapshot['uptime_s'] >= 0
