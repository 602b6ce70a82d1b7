"""In-process counters for webhook traffic, outbound sends and failures."""

import threading
import time
from datetime import datetime, timezone
from typing import Callable, Optional

import psutil

from app.logging_config import get_logger

logger = get_logger("metrics")

BYTE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_uptime(total_seconds: float) -> str:
    seconds = int(total_seconds)
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days}d {hours % 24}h {minutes % 60}m"
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    return f"{minutes}m {seconds % 60}s"


def format_bytes(num_bytes: float) -> str:
    if num_bytes <= 0:
        return "0 Bytes"
    value = float(num_bytes)
    index = 0
    while value >= 1024 and index < len(BYTE_UNITS) - 1:
        value /= 1024
        index += 1
    # 1.50 -> "1.5", 2.00 -> "2"
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {BYTE_UNITS[index]}"


def _process_memory() -> tuple[int, int]:
    info = psutil.Process().memory_info()
    return info.rss, info.vms


class MetricsCollector:
    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        memory_reader: Optional[Callable[[], tuple[int, int]]] = None,
    ):
        self._clock = clock
        self._memory_reader = memory_reader or _process_memory
        self._lock = threading.Lock()
        self._started_at = clock()

        self.webhook_requests = 0
        self.messages_sent = 0
        self.database_errors = 0
        self.viber_api_errors = 0
        self.total_response_time = 0.0
        self.average_response_time = 0.0
        self.peak_memory_usage = 0

    def record_webhook_request(self, duration_ms: float) -> None:
        with self._lock:
            self.webhook_requests += 1
            self.total_response_time += duration_ms
            self.average_response_time = self.total_response_time / self.webhook_requests

    def record_message_sent(self) -> None:
        with self._lock:
            self.messages_sent += 1

    def record_database_error(self) -> None:
        with self._lock:
            self.database_errors += 1

    def record_viber_api_error(self) -> None:
        with self._lock:
            self.viber_api_errors += 1

    def get_metrics(self) -> dict:
        """Return a snapshot; also raises the peak memory mark if exceeded."""
        current, total = self._memory_reader()
        uptime_seconds = self._clock() - self._started_at

        with self._lock:
            if current > self.peak_memory_usage:
                self.peak_memory_usage = current
            peak = self.peak_memory_usage
            snapshot = {
                "webhook_requests": self.webhook_requests,
                "messages_sent": self.messages_sent,
                "database_errors": self.database_errors,
                "viber_api_errors": self.viber_api_errors,
                "total_response_time": self.total_response_time,
                "average_response_time": self.average_response_time,
                "peak_memory_usage": peak,
            }

        snapshot.update(
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "uptime": int(uptime_seconds),
                "uptime_formatted": format_uptime(uptime_seconds),
                "memory_usage": {
                    "current": current,
                    "peak": peak,
                    "total": total,
                    "formatted": {
                        "current": format_bytes(current),
                        "peak": format_bytes(peak),
                        "total": format_bytes(total),
                    },
                },
            }
        )
        return snapshot

    def log_metrics(self) -> None:
        logger.info("System metrics", extra={"context": self.get_metrics()})
