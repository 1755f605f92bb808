"""
ChangeLog: the bounded, observable history of messages for clients.

Appending never blocks on clients. Observers are called synchronously,
under the lock, with ``(old_log, new_log)``; they must hand work off to
their own loop instead of doing I/O. Holding the lock while notifying keeps
every observer's view consistent with append order.
"""
import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from .messages import ChangeEvent

logger = logging.getLogger(__name__)

MAX_LOG_SIZE = 30

Log = Tuple[ChangeEvent, ...]
Observer = Callable[[Log, Log], None]

@dataclass(frozen=True)
class Subscription:
    key: str

class ChangeLog:
    def __init__(self, max_size: int = MAX_LOG_SIZE):
        self.max_size = max_size
        self._lock = threading.RLock()
        self._log: Log = ()
        self._observers: Dict[Subscription, Observer] = {}
        self._ids = itertools.count(1)

    @property
    def events(self) -> Log:
        """Current log, newest first"""
        with self._lock:
            return self._log

    @property
    def head(self) -> Optional[ChangeEvent]:
        log = self.events
        return log[0] if log else None

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._observers)

    def __len__(self) -> int:
        return len(self.events)

    def append(self, event: ChangeEvent) -> Log:
        """Prepend event, dropping the oldest entries beyond max_size"""
        with self._lock:
            old = self._log
            new = (event,) + old[:self.max_size - 1]
            self._log = new
            for subscription, observer in list(self._observers.items()):
                try:
                    observer(old, new)
                except Exception:
                    logger.exception(f"Change log observer {subscription.key} failed")
        logger.debug(f"Appended {event.msg_name} (log size {len(new)})")
        return new

    def subscribe(self, observer: Observer) -> Subscription:
        """Call observer on every later append until unsubscribed"""
        with self._lock:
            subscription = Subscription(f"message-watch-{next(self._ids)}")
            self._observers[subscription] = observer
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Remove an observer; returns False if it was already gone"""
        with self._lock:
            return self._observers.pop(subscription, None) is not None
