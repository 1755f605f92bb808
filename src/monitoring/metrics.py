import threading
import time
from typing import Dict, Any, List
from dataclasses import dataclass, asdict

@dataclass
class ErrorRecord:
    name: str
    message: str
    timestamp: float

class MetricsTracker:
    """In-process counters for the reload server.

    Safe to use from build threads and the event loop at the same time.
    """

    def __init__(self, max_errors: int = 50):
        self.metrics: Dict[str, int] = {
            'events_appended': 0,
            'messages_sent': 0,
            'pings_sent': 0,
            'sends_skipped': 0,
            'clients_connected': 0,
            'clients_disconnected': 0,
        }
        self.errors: List[ErrorRecord] = []
        self.max_errors = max_errors
        self.started_at = time.time()
        self._lock = threading.Lock()

    def record(self, name: str, amount: int = 1):
        """Increment a named counter"""
        with self._lock:
            self.metrics[name] = self.metrics.get(name, 0) + amount

    def record_error(self, name: str, message: str):
        """Remember a recent error, keeping at most max_errors"""
        with self._lock:
            self.errors.append(ErrorRecord(name, message, time.time()))
            if len(self.errors) > self.max_errors:
                self.errors.pop(0)

    def get(self, name: str) -> int:
        with self._lock:
            return self.metrics.get(name, 0)

    def snapshot(self) -> Dict[str, Any]:
        """Return a JSON-friendly copy of all counters and recent errors"""
        with self._lock:
            return {
                'uptime_s': round(time.time() - self.started_at, 3),
                'counters': dict(self.metrics),
                'errors': [asdict(e) for e in self.errors],
            }
