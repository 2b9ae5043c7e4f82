"""
Web server for RelayTV.

Provides the FastAPI application that serves the player page and static
assets, and the WebSocket endpoint through which viewers receive channel
updates. This module is the ViewerChannel transport: it owns the set of
connected viewers and raises join events into the orchestrator.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.websockets import WebSocketState
from uvicorn import Config, Server

from ..adapters.probes import RumbleFeedProbe
from ..infra.exceptions import TransportError
from ..infra.settings import Settings
from ..runtime.config import ChannelConfig
from ..runtime.orchestrator import PlaybackOrchestrator, ViewerJoined
from ..runtime.live_arbitrator import LiveSourceProbe
from ..runtime.viewers import ViewerRegistry

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"
CLIENT_PAGE = STATIC_DIR / "client.html"


class WebSocketViewer:
    """ViewerHandle backed by a Starlette WebSocket."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        client = websocket.client
        self._address = f"{client.host}:{client.port}" if client else "unknown"

    @property
    def address(self) -> str:
        return self._address

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, message: str) -> None:
        try:
            await self.websocket.send_text(message)
        except (WebSocketDisconnect, RuntimeError) as e:
            raise TransportError(f"viewer {self._address} unreachable: {e}") from e


def create_app(orchestrator: PlaybackOrchestrator, registry: ViewerRegistry) -> FastAPI:
    """
    Build the FastAPI application.

    The application lifespan starts and stops the orchestrator, so timers
    only run while the server is serving.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await orchestrator.start()
        try:
            yield
        finally:
            await orchestrator.stop()
            await registry.drain()

    app = FastAPI(title="RelayTV", lifespan=lifespan)
    app.state.orchestrator = orchestrator
    app.state.registry = registry

    @app.get("/", include_in_schema=False)
    async def index() -> FileResponse:
        return FileResponse(CLIENT_PAGE, media_type="text/html")

    @app.get("/api/state")
    async def current_state() -> JSONResponse:
        """What a viewer joining right now would be told (does not register a viewer)."""
        snapshot = orchestrator.join_snapshot()
        return JSONResponse(snapshot.to_wire())

    @app.websocket("/ws")
    async def viewer_socket(websocket: WebSocket) -> None:
        await websocket.accept()
        viewer = WebSocketViewer(websocket)
        registry.register(viewer)
        orchestrator.submit(ViewerJoined(viewer))
        try:
            while True:
                # Viewers only listen; incoming frames are ignored
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            registry.unregister(viewer)

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    return app


def build_application(
    config: ChannelConfig,
    settings: Settings,
    probe: LiveSourceProbe | None = None,
) -> FastAPI:
    """Wire probe, viewer registry, orchestrator and app for a channel."""
    if probe is None:
        probe = RumbleFeedProbe(
            settings.feed_url_template,
            timeout_sec=settings.probe_timeout_sec,
        )
    registry = ViewerRegistry()
    orchestrator = PlaybackOrchestrator(
        config,
        probe,
        registry,
        probe_timeout_sec=settings.probe_timeout_sec,
    )
    return create_app(orchestrator, registry)


def run_server(app: FastAPI, host: str, port: int, log_level: str = "info") -> None:
    """Serve ``app`` with uvicorn until interrupted."""
    logger.info("Listening on http://%s:%s", host, port)
    config = Config(app, host=host, port=port, log_level=log_level.lower())
    Server(config).run()
