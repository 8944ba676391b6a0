from __future__ import annotations

import argparse
import asyncio
import json
import logging
from dataclasses import asdict
from pathlib import Path
from time import perf_counter
from typing import Any, Dict, Optional, Set

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from ..config import AppConfig
from ..sim.core.agent import Attractor
from ..sim.core.flock import Flock
from ..sim.systems.boundaries import Wraparound
from ..sim.systems.population import PopulationController

logger = logging.getLogger(__name__)

_PARKED = float("inf")


class SimulationController:
    def __init__(self, config: AppConfig):
        self.config = config
        self.flock = Flock(config.flock)
        self.broadcast_interval = max(1, config.broadcast_interval)
        self.running = False
        self.speed_multiplier = 1.0
        self.clients: Set[WebSocket] = set()
        self.pointer: Attractor | None = None
        self.wraparound: Wraparound | None = None
        self.population: PopulationController | None = None
        self._lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None

        if config.viewport.wrap:
            self.wraparound = Wraparound(config.viewport.width, config.viewport.height)
            self.flock.on_tick(self.wraparound)
        if config.population.enabled:
            self.population = PopulationController(self.flock, config.population)
        self._install_pointer()

    @property
    def tick(self) -> int:
        return self.flock.tick_count

    def _install_pointer(self) -> None:
        pointer = self.config.pointer_attractor
        if pointer is None:
            self.pointer = None
            return
        # Parked at infinity the pointer attractor is out of every agent's range.
        self.pointer = self.flock.add_attractor(_PARKED, _PARKED, pointer.radius, pointer.force)

    async def start(self) -> None:
        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self._loop())
        self.running = True

    async def stop(self) -> None:
        self.running = False

    async def reset(self) -> None:
        async with self._lock:
            self.flock.reset()
            self._install_pointer()
        await self._broadcast_snapshot()

    async def step(self) -> None:
        async with self._lock:
            self.flock.tick()
            if self.population is not None:
                self.population.record_tick(perf_counter())
        if self.tick % self.broadcast_interval == 0:
            await self._broadcast_snapshot()

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(1.0 / self.config.tick_rate / self.speed_multiplier)
            if not self.running:
                continue
            await self.step()

    async def move_pointer(self, x: float, y: float) -> None:
        if self.pointer is None:
            return
        async with self._lock:
            self.pointer.move_to(x, y)

    async def park_pointer(self) -> None:
        await self.move_pointer(_PARKED, _PARKED)

    async def resize(self, width: float, height: float) -> None:
        if self.wraparound is None:
            return
        async with self._lock:
            self.wraparound.resize(width, height)

    def snapshot_payload(self) -> Dict[str, Any]:
        snapshot = self.flock.snapshot()
        return {
            "type": "snapshot",
            "tick": snapshot.tick,
            "metrics": asdict(snapshot.metrics),
            "agents": snapshot.agents,
            "attractors": snapshot.attractors,
        }

    async def handle_message(self, message: str) -> None:
        try:
            payload = json.loads(message)
        except json.JSONDecodeError:
            return
        if not isinstance(payload, dict):
            return
        kind = payload.get("type")
        if kind == "pointer":
            x = payload.get("x")
            y = payload.get("y")
            if isinstance(x, (int, float)) and isinstance(y, (int, float)):
                await self.move_pointer(float(x), float(y))
        elif kind == "pointer_leave":
            await self.park_pointer()
        elif kind == "resize":
            width = payload.get("width")
            height = payload.get("height")
            if isinstance(width, (int, float)) and isinstance(height, (int, float)):
                await self.resize(float(width), float(height))

    async def _broadcast_snapshot(self) -> None:
        if not self.clients:
            return
        payload = json.dumps(self.snapshot_payload())
        stale: Set[WebSocket] = set()
        for client in list(self.clients):
            try:
                await client.send_text(payload)
            except (WebSocketDisconnect, RuntimeError):
                # Starlette raises RuntimeError when sending on a socket that is closing.
                stale.add(client)
        for client in stale:
            self.clients.discard(client)


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    controller = SimulationController(config if config is not None else AppConfig())
    app = FastAPI(title="Flock Simulation")
    app.state.controller = controller

    @app.on_event("startup")
    async def _startup() -> None:
        await controller.start()

    @app.get("/api/status")
    async def status() -> JSONResponse:
        snapshot = controller.flock.snapshot()
        return JSONResponse(
            {
                "running": controller.running,
                "tick": controller.tick,
                "population": len(controller.flock.agents),
                "attractors": len(controller.flock.attractors),
                "metrics": asdict(snapshot.metrics),
            }
        )

    @app.get("/api/snapshot")
    async def snapshot() -> JSONResponse:
        return JSONResponse(controller.snapshot_payload())

    @app.post("/api/control/start")
    async def start_simulation() -> JSONResponse:
        controller.running = True
        return JSONResponse({"running": True})

    @app.post("/api/control/stop")
    async def stop_simulation() -> JSONResponse:
        controller.running = False
        return JSONResponse({"running": False})

    @app.post("/api/control/reset")
    async def reset_simulation() -> JSONResponse:
        await controller.reset()
        return JSONResponse({"running": controller.running, "tick": controller.tick})

    @app.post("/api/control/speed")
    async def set_speed(payload: dict) -> JSONResponse:
        speed = float(payload.get("multiplier", 1.0))
        controller.speed_multiplier = max(0.1, min(5.0, speed))
        return JSONResponse({"multiplier": controller.speed_multiplier})

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket) -> None:
        await websocket.accept()
        controller.clients.add(websocket)
        await websocket.send_text(json.dumps(controller.snapshot_payload()))
        try:
            while True:
                message = await websocket.receive_text()
                await controller.handle_message(message)
        except WebSocketDisconnect:
            controller.clients.discard(websocket)

    return app


def main(argv: Optional[list[str]] = None) -> None:
    import uvicorn

    parser = argparse.ArgumentParser(description="Serve the flock simulation over HTTP and websockets")
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = AppConfig.from_yaml(args.config) if args.config else AppConfig()
    logger.info("serving flock of %d agents on %s:%d", config.flock.size, args.host, args.port)
    uvicorn.run(create_app(config), host=args.host, port=args.port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
