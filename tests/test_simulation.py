import asyncio
import io
import math
import struct

import pytest

from asteroidnet import mcp
from asteroidnet.jitter import InputBuffer
from asteroidnet.simulation import Simulation
from asteroidnet.state import SCREEN_HEIGHT, SCREEN_WIDTH, Input, State


async def _start_with_client():
    sim = await Simulation.start("127.0.0.1:0")
    client = await mcp.dial(sim.listener.local_addr())
    await asyncio.sleep(0.1)
    return sim, client


def _shutdown(sim, client):
    try:
        client.close()
    except mcp.ClosedError:
        pass
    sim.close()


@pytest.mark.asyncio
async def test_layout_is_world_size():
    sim = await Simulation.start("127.0.0.1:0")
    try:
        assert sim.layout(640, 360) == (SCREEN_WIDTH, SCREEN_HEIGHT)
    finally:
        sim.close()


@pytest.mark.asyncio
async def test_inputs_are_acknowledged():
    sim, client = await _start_with_client()
    try:
        out = io.BytesIO()
        InputBuffer.from_inputs([Input(up=True), Input(left=True)]).encode(out)
        await client.send(out.getvalue())
        data = await asyncio.wait_for(client.receive(), 2)
        assert struct.unpack(">HI", data) == (0, 1)
    finally:
        _shutdown(sim, client)


@pytest.mark.asyncio
async def test_update_broadcasts_state_with_joined_player():
    sim, client = await _start_with_client()
    try:
        sim.state.last_asteroid = math.inf
        assert await sim.update(1 / 30) is True
        data = await asyncio.wait_for(client.receive(), 2)
        assert struct.unpack(">HI", data[:6]) == (1, 0)
        state = State.decode(io.BytesIO(data[6:]))
        assert [p.id for p in state.players] == [1]
        assert sim.last_state_index == 1
    finally:
        _shutdown(sim, client)


@pytest.mark.asyncio
async def test_update_after_close_reports_termination():
    sim = await Simulation.start("127.0.0.1:0")
    sim.close()
    assert await sim.update(1 / 30) is False