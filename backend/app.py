"""FastAPI application hosting the periodic heartbeat runner."""
from __future__ import annotations

import logging

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from tickwork.config import settings
from tickwork.errors import ShutdownTimeout
from tickwork.services.cancellation import CancellationSignal

from . import workers, ws
from .routers import runner

logger = logging.getLogger(__name__)

app = FastAPI(title="tickwork periodic runner", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(runner.router, prefix="/api/runner", tags=["runner"])


@app.on_event("startup")
async def _startup() -> None:
    logger.info("Starting tickwork host in %s environment", settings.environment)
    app.state.host_signal = CancellationSignal()
    app.state.controller = workers.create_controller(settings, listeners=[ws.manager.broadcast_event])
    if app.state.controller is not None:
        await app.state.controller.start(app.state.host_signal)


@app.on_event("shutdown")
async def _shutdown() -> None:
    host_signal = getattr(app.state, "host_signal", None)
    if host_signal is not None:
        host_signal.cancel("application shutdown")
    controller = getattr(app.state, "controller", None)
    if controller is None:
        return
    logger.info("Stopping periodic runner")
    try:
        await controller.stop(timeout=settings.shutdown_timeout_seconds)
    except ShutdownTimeout as exc:
        logger.error("Periodic runner did not stop cleanly: %s", exc)


@app.websocket("/ws/events")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await ws.manager.connect(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Websocket disconnect")
    finally:
        await ws.manager.disconnect(websocket)


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=8000)
