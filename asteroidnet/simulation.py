"""The authoritative server: runs the world and broadcasts it to clients."""

from __future__ import annotations

import asyncio
import io
import logging
import struct
from dataclasses import dataclass, field

import pygame

from asteroidnet import mcp
from asteroidnet.jitter import InputBuffer
from asteroidnet.mcp import ClosedError
from asteroidnet.render import draw_state
from asteroidnet.state import SCREEN_HEIGHT, SCREEN_WIDTH, DecodeError, Input, State

MSG_INPUT_ACK = 0
MSG_STATE = 1

_logger = logging.getLogger(__name__)


@dataclass
class _Client:
    session: mcp.Session
    inputs: asyncio.Queue[Input] = field(default_factory=lambda: asyncio.Queue(maxsize=1))

    async def receive_loop(self) -> None:
        remote = self.session.remote_addr()
        while True:
            try:
                data = await self.session.receive()
            except ClosedError:
                return
            try:
                buf = InputBuffer.decode(io.BytesIO(data))
            except DecodeError as exc:
                _logger.warning("failed to unmarshal inputs", extra={"remote": remote, "error": exc})
                continue
            indices = buf.indices()
            if indices:
                self.session.try_send(struct.pack(">HI", MSG_INPUT_ACK, indices[-1]))
            for inp in buf.inputs():
                try:
                    self.inputs.put_nowait(inp)
                except asyncio.QueueFull:
                    pass


class Simulation:
    """Accepts clients, applies their inputs and broadcasts each tick's state."""

    def __init__(self, listener: mcp.Listener, font: pygame.font.Font | None = None) -> None:
        self.listener = listener
        self.state = State.initial()
        self.last_state_index = 0
        self.font = font
        self._clients: dict[str, _Client] = {}
        self._joined: asyncio.Queue[str] = asyncio.Queue()
        self._left: asyncio.Queue[str] = asyncio.Queue()
        self._tasks: set[asyncio.Task] = set()
        self._acceptor: asyncio.Task | None = None

    @classmethod
    async def start(cls, laddr: str) -> Simulation:
        listener = await mcp.listen(laddr, logger=logging.getLogger("asteroidnet.mcp"))
        _logger.info("bound udp/mcp listener", extra={"address": listener.local_addr()})
        sim = cls(listener)
        sim._acceptor = asyncio.get_running_loop().create_task(sim._accept_loop())
        return sim

    async def _accept_loop(self) -> None:
        while True:
            try:
                session = await self.listener.accept()
            except ClosedError:
                return
            client = _Client(session)
            raddr = session.remote_addr()
            self._clients[raddr] = client
            task = asyncio.get_running_loop().create_task(self._serve(raddr, client))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            self._joined.put_nowait(raddr)
            _logger.info("client joined", extra={"raddr": raddr})

    async def _serve(self, raddr: str, client: _Client) -> None:
        await client.receive_loop()
        self._clients.pop(raddr, None)
        self._left.put_nowait(raddr)

    def layout(self, width: int, height: int) -> tuple[int, int]:
        return SCREEN_WIDTH, SCREEN_HEIGHT

    async def update(self, dt: float) -> bool:
        """Advance one tick of ``dt`` seconds; False once the listener is closed."""
        while not self._joined.empty():
            self.state.add_player(self._joined.get_nowait())
        while not self._left.empty():
            self.state.remove_player(self._left.get_nowait())

        inputs: dict[str, Input] = {}
        for addr, client in self._clients.items():
            try:
                inputs[addr] = client.inputs.get_nowait()
            except asyncio.QueueEmpty:
                pass

        self.state.update(dt, inputs)

        out = io.BytesIO()
        out.write(struct.pack(">HI", MSG_STATE, self.last_state_index))
        self.state.encode(out)
        try:
            await asyncio.wait_for(self.listener.broadcast(out.getvalue()), timeout=dt)
        except ClosedError:
            return False
        except asyncio.TimeoutError:
            return True
        except Exception as exc:  # noqa: BLE001 - a failed tick is only logged
            _logger.warning("failed to send state", extra={"error": exc})
            return True
        self.last_state_index += 1
        return True

    def draw(self, surface: pygame.Surface) -> None:
        draw_state(surface, self.state, self.font)

    def close(self) -> None:
        if self._acceptor is not None:
            self._acceptor.cancel()
        self.listener.close()