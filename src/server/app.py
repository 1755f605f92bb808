import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from ..reload.notifier import ChangeNotifier
from .channel import HEARTBEAT_INTERVAL, NotificationChannel, WebSocketConnection

logger = logging.getLogger(__name__)

WS_PATH = "/figwheel-ws"

class ReloadServer:
    """Dev server: the reload WebSocket plus static files from the server root.

    CORS is wide open so things like @font-face work from other origins.
    Never use this as a production server.
    """

    def __init__(self, notifier: ChangeNotifier, heartbeat_interval: float = HEARTBEAT_INTERVAL):
        self.notifier = notifier
        self.config = notifier.config
        self.metrics = notifier.metrics
        self.heartbeat_interval = heartbeat_interval
        self.app = FastAPI(
            title="Reload Server",
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
            lifespan=self._lifespan,
        )
        self._setup_middleware()
        self.register_routes()

    def _setup_middleware(self):
        self.app.add_middleware(
            CORSMiddleware,
            allow_origin_regex=".*",
            allow_methods=["HEAD", "OPTIONS", "GET"],
            allow_headers=["*"],
        )

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        stop_event = asyncio.Event()
        css_task = None
        watcher = self.notifier.css_watcher
        if watcher is not None:
            css_task = asyncio.create_task(
                watcher.watch(self.notifier.check_for_css_changes, stop_event)
            )
        logger.info(f"Starting server at http://{self.config.host}:{self.config.server_port}")
        try:
            yield
        finally:
            stop_event.set()
            if css_task is not None:
                css_task.cancel()
                try:
                    await css_task
                except asyncio.CancelledError:
                    pass

    def static_dir(self) -> Optional[Path]:
        """First existing <resource-path>/<server-root> directory"""
        root = Path(self.config.root)
        for resource_path in self.config.resource_paths:
            candidate = root / resource_path / self.config.http_server_root
            if candidate.is_dir():
                return candidate
        return None

    def status(self) -> Dict[str, Any]:
        return {
            'subscribers': self.notifier.change_log.subscriber_count,
            'log_size': len(self.notifier.change_log),
            'metrics': self.metrics.snapshot(),
        }

    def register_routes(self):
        @self.app.websocket(WS_PATH)
        async def reload_socket(websocket: WebSocket):
            await self.handle_client(websocket)

        @self.app.get("/status")
        async def status():
            return self.status()

        static_dir = self.static_dir()
        if static_dir is not None:
            self.app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")
        else:
            logger.warning(f"No '{self.config.http_server_root}' directory under "
                           f"{self.config.resource_paths}, static files are not served")

    async def handle_client(self, websocket: WebSocket):
        connection = WebSocketConnection(websocket)
        channel = NotificationChannel(
            connection,
            self.notifier.change_log,
            compile_wait_time=self.config.compile_wait_time,
            heartbeat_interval=self.heartbeat_interval,
            metrics=self.metrics,
        )
        # subscribe before accepting so nothing appended after the handshake is missed
        channel.open()
        status = None
        try:
            await websocket.accept()
            logger.info("client connected")
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    status = message.get("code")
                    break
        finally:
            connection.mark_closed()
            channel.close(status)

def create_app(notifier: Optional[ChangeNotifier] = None) -> FastAPI:
    return ReloadServer(notifier or ChangeNotifier()).app
