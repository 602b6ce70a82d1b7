from unittest.mock import patch

import pytest

from app.services.metrics_service import MetricsCollector, format_bytes, format_uptime


class TestFormatUptime:
    @pytest.mark.parametrize(
        "seconds, expected",
        [
            (0, "0m 0s"),
            (59, "0m 59s"),
            (125, "2m 5s"),
            (3600, "1h 0m"),
            (3 * 3600 + 25 * 60 + 10, "3h 25m"),
            (86400, "1d 0h 0m"),
            (2 * 86400 + 5 * 3600 + 7 * 60, "2d 5h 7m"),
        ],
    )
    def test_collapses_to_coarsest_unit(self, seconds, expected):
        assert format_uptime(seconds) == expected


class TestFormatBytes:
    @pytest.mark.parametrize(
        "num_bytes, expected",
        [
            (0, "0 Bytes"),
            (512, "512 Bytes"),
            (1024, "1 KB"),
            (1536, "1.5 KB"),
            (1024 * 1024, "1 MB"),
            (int(2.25 * 1024 * 1024 * 1024), "2.25 GB"),
            (1234567, "1.18 MB"),
        ],
    )
    def test_binary_units(self, num_bytes, expected):
        assert format_bytes(num_bytes) == expected


class TestCounters:
    def test_average_response_time(self, metrics):
        durations = [10.0, 20.0, 45.0]
        for duration in durations:
            metrics.record_webhook_request(duration)

        snapshot = metrics.get_metrics()
        assert snapshot["webhook_requests"] == 3
        assert snapshot["total_response_time"] == pytest.approx(75.0)
        assert snapshot["average_response_time"] == pytest.approx(sum(durations) / len(durations))

    def test_average_is_zero_before_requests(self, metrics):
        assert metrics.get_metrics()["average_response_time"] == 0

    def test_event_counters(self, metrics):
        metrics.record_message_sent()
        metrics.record_message_sent()
        metrics.record_database_error()
        metrics.record_viber_api_error()

        snapshot = metrics.get_metrics()
        assert snapshot["messages_sent"] == 2
        assert snapshot["database_errors"] == 1
        assert snapshot["viber_api_errors"] == 1


class TestSnapshot:
    def test_peak_memory_never_decreases(self):
        readings = iter([(5000, 9000), (3000, 9000), (8000, 9000), (1000, 9000)])
        collector = MetricsCollector(memory_reader=lambda: next(readings))

        peaks = [collector.get_metrics()["peak_memory_usage"] for _ in range(4)]

        assert peaks == [5000, 5000, 8000, 8000]

    def test_memory_usage_block(self, metrics):
        memory = metrics.get_metrics()["memory_usage"]
        assert memory["current"] == 1024
        assert memory["total"] == 4096
        assert memory["formatted"] == {"current": "1 KB", "peak": "1 KB", "total": "4 KB"}

    def test_uptime_fields(self):
        clock_values = iter([100.0, 100.0 + 3725])
        collector = MetricsCollector(clock=lambda: next(clock_values), memory_reader=lambda: (0, 0))

        snapshot = collector.get_metrics()

        assert snapshot["uptime"] == 3725
        assert snapshot["uptime_formatted"] == "1h 2m"
        assert "timestamp" in snapshot

    def test_default_reader_uses_process_memory(self):
        with patch("app.services.metrics_service.psutil.Process") as mock_process:
            mock_process.return_value.memory_info.return_value.rss = 2048
            mock_process.return_value.memory_info.return_value.vms = 8192
            snapshot = MetricsCollector().get_metrics()

        assert snapshot["memory_usage"]["current"] == 2048
        assert snapshot["memory_usage"]["total"] == 8192


class TestLogMetrics:
    def test_logs_snapshot_as_context(self, metrics):
        with patch("app.services.metrics_service.logger") as mock_logger:
            metrics.log_metrics()

        mock_logger.info.assert_called_once()
        context = mock_logger.info.call_args[1]["extra"]["context"]
        assert "webhook_requests" in context
