"""The client: sends inputs and shows interpolated server snapshots."""

from __future__ import annotations

import asyncio
import io
import logging
import struct
import time
from collections.abc import Callable

import pygame

from asteroidnet import mcp
from asteroidnet.jitter import InputBuffer
from asteroidnet.mcp import ClosedError
from asteroidnet.render import draw_state
from asteroidnet.simulation import MSG_INPUT_ACK, MSG_STATE
from asteroidnet.state import SCREEN_HEIGHT, SCREEN_WIDTH, DecodeError, Input, State

_logger = logging.getLogger(__name__)


class Game:
    """Client side of a session with a simulation."""

    def __init__(
        self,
        session: mcp.Session,
        font: pygame.font.Font | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.session = session
        self.font = font
        self.state = State()
        self.last_state_index = 0
        self._clock = clock
        self._inputs = InputBuffer()
        self._prev: tuple[State, float | None] = (State(), None)
        self._next: tuple[State, float | None] = (State(), None)
        self._receiver: asyncio.Task | None = None

    @classmethod
    async def start(cls, raddr: str) -> Game:
        session = await mcp.dial(raddr, logger=logging.getLogger("asteroidnet.mcp"))
        game = cls(session)
        game._receiver = asyncio.get_running_loop().create_task(game._receive_loop())
        return game

    async def _receive_loop(self) -> None:
        while True:
            try:
                data = await self.session.receive()
            except ClosedError:
                return
            self.handle_message(data)

    def handle_message(self, data: bytes) -> None:
        """Apply an input acknowledgement or a state snapshot from the server."""
        reader = io.BytesIO(data)
        header = reader.read(2)
        if len(header) != 2:
            _logger.warning("failed to read message type")
            return
        (kind,) = struct.unpack(">H", header)
        if kind not in (MSG_INPUT_ACK, MSG_STATE):
            return
        raw = reader.read(4)
        if len(raw) != 4:
            _logger.warning("failed to read message index")
            return
        (index,) = struct.unpack(">I", raw)
        if kind == MSG_INPUT_ACK:
            self._inputs.discard_until(index)
            return
        if index <= self.last_state_index:
            return
        try:
            snapshot = State.decode(reader)
        except DecodeError as exc:
            _logger.warning("failed to unmarshal state", extra={"error": exc})
            return
        self._prev = self._next
        self._next = (snapshot, self._clock())
        self.last_state_index = index

    def layout(self, width: int, height: int) -> tuple[int, int]:
        return SCREEN_WIDTH, SCREEN_HEIGHT

    def update(self, input: Input) -> bool:  # noqa: A002
        """Send ``input`` with all unacknowledged ones; False once the session closed."""
        if self.session.closed():
            return False
        self._inputs.append(input)
        out = io.BytesIO()
        self._inputs.encode(out)
        self.session.try_send(out.getvalue())

        next_state, next_time = self._next
        if next_time is not None:
            prev_state, prev_time = self._prev
            if prev_time is None:
                # Only one snapshot so far: stay on the (empty) earlier one.
                self.state = prev_state
            else:
                # Both snapshots are already past, so interpolation lags by a
                # frame: t measures time since the newer snapshot.
                span = next_time - prev_time
                elapsed = self._clock() - next_time
                t = elapsed / span if span > 0 else 1.0
                self.state = prev_state.lerp(next_state, t)
        return True

    def draw(self, surface: pygame.Surface) -> None:
        draw_state(surface, self.state, self.font)

    def close(self) -> None:
        if self._receiver is not None:
            self._receiver.cancel()
        self.session.close()