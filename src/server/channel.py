import asyncio
import logging
from enum import Enum
from typing import Any, Optional

from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from ..monitoring.metrics import MetricsTracker
from ..reload.change_log import ChangeLog, Log, Subscription
from ..reload.messages import ChangeEvent, Ping

logger = logging.getLogger(__name__)

HEARTBEAT_INTERVAL = 5.0  # seconds
DEFAULT_COMPILE_WAIT_TIME = 10  # ms

class ConnectionClosed(Exception):
    """The transport went away while sending"""

class WebSocketConnection:
    """Adapts a Starlette WebSocket to what NotificationChannel needs"""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self._closed = False

    @property
    def is_open(self) -> bool:
        return (not self._closed
                and self.websocket.client_state == WebSocketState.CONNECTED
                and self.websocket.application_state == WebSocketState.CONNECTED)

    async def send(self, text: str):
        try:
            await self.websocket.send_text(text)
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            self._closed = True
            raise ConnectionClosed(str(e)) from e

    def mark_closed(self):
        self._closed = True

class ChannelState(Enum):
    CONNECTED = "connected"
    OPEN = "open"
    CLOSED = "closed"

class NotificationChannel:
    """Pushes change log messages to one client.

    Appends are debounced by ``compile_wait_time`` ms; when the wait is over
    the newest message in the log is sent. A ping goes out every
    ``heartbeat_interval`` seconds while the connection is open.
    """

    def __init__(self, connection: Any, change_log: ChangeLog,
                 compile_wait_time: int = DEFAULT_COMPILE_WAIT_TIME,
                 heartbeat_interval: float = HEARTBEAT_INTERVAL,
                 metrics: Optional[MetricsTracker] = None):
        self.connection = connection
        self.change_log = change_log
        self.compile_wait_time = compile_wait_time
        self.heartbeat_interval = heartbeat_interval
        self.metrics = metrics or MetricsTracker()
        self.state = ChannelState.CONNECTED
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._subscription: Optional[Subscription] = None
        self._heartbeat_task: Optional[asyncio.Task] = None
        self._pending: Optional[asyncio.Task] = None
        self._latest: Optional[ChangeEvent] = None
        self._waiting = False
        self._send_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self.state is ChannelState.OPEN and self.connection.is_open

    def open(self):
        """Subscribe to the change log and start the heartbeat. Needs a running loop."""
        if self.state is not ChannelState.CONNECTED:
            return
        self._loop = asyncio.get_running_loop()
        self._subscription = self.change_log.subscribe(self._on_append)
        self._heartbeat_task = self._loop.create_task(self._heartbeat())
        self.state = ChannelState.OPEN
        self.metrics.record('clients_connected')
        logger.debug(f"Channel subscribed as {self._subscription.key}")

    def close(self, status: Any = None):
        """Tear down the subscription and tasks. Safe to call more than once."""
        if self.state is ChannelState.CLOSED:
            return
        was_open = self.state is ChannelState.OPEN
        self.state = ChannelState.CLOSED
        if self._subscription is not None:
            self.change_log.unsubscribe(self._subscription)
            self._subscription = None
        for task in (self._heartbeat_task, self._pending):
            if task is not None and not task.done():
                task.cancel()
        self._heartbeat_task = None
        self._pending = None
        if was_open:
            self.metrics.record('clients_disconnected')
        logger.info(f"client disconnected {status if status is not None else ''}".rstrip())

    def _on_append(self, old: Log, new: Log):
        # runs on the appending thread, possibly not ours
        if not new or self._loop is None:
            return
        try:
            self._loop.call_soon_threadsafe(self._schedule_delivery, new[0])
        except RuntimeError:
            logger.warning("Event loop is closed, dropping channel subscription")
            if self._subscription is not None:
                self.change_log.unsubscribe(self._subscription)

    def _schedule_delivery(self, event: ChangeEvent):
        if self.state is not ChannelState.OPEN:
            return
        self._latest = event
        if not self._waiting:
            self._waiting = True
            self._pending = asyncio.ensure_future(self._deliver())

    async def _deliver(self):
        try:
            await asyncio.sleep(self.compile_wait_time / 1000)
        finally:
            self._waiting = False
        event, self._latest = self._latest, None
        if event is not None:
            await self.send(event)

    async def _heartbeat(self):
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            if not self.is_open:
                return
            if await self.send(Ping()):
                self.metrics.record('pings_sent')

    async def send(self, event: ChangeEvent) -> bool:
        """Send one message; a closed connection makes this a no-op"""
        async with self._send_lock:
            if not self.is_open:
                self.metrics.record('sends_skipped')
                return False
            try:
                await self.connection.send(event.to_wire())
            except ConnectionClosed as e:
                logger.debug(f"Send failed, closing channel: {e}")
                self.close("send failed")
                return False
        if not isinstance(event, Ping):
            self.metrics.record('messages_sent')
        return True
