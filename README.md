# asteroidnet

A multiplayer Asteroids game played over UDP. One process is the server: it
runs the authoritative simulation and shows it in a window. Clients connect
to it, send their keyboard input every frame, and draw the world state the
server sends back, interpolating between the two latest snapshots.

## Installation

```
pip install .
```

With the test dependencies:

```
pip install ".[test]"
```

## Playing

Start a server:

```
asteroids --listen 127.0.0.1:7777
```

Connect a client to it:

```
asteroids --connect 127.0.0.1:7777
```

The single-dash spellings `-listen` and `-connect` work as well. One of the
two must be given; with neither, the command logs an error and exits with
status 1. The server ticks 30 times a second; the client window is resizable.

Keys on the client:

| Key   | Action                                   |
|-------|------------------------------------------|
| W     | thrust forward                           |
| S     | thrust backward                          |
| A / D | rotate left / right                      |
| Space | shoot (rotation slows down while firing) |

A new asteroid enters from a random edge every two seconds. Shooting one adds
a point to the shared score; a ship that hits an asteroid is removed and costs
ten points, and the score never goes below zero.

Close the window or press Ctrl-C to stop. A second Ctrl-C in a row exits the
process at once.

Log output goes to standard error: short coloured lines on a terminal, one
JSON object per line otherwise (`asteroidnet.logsetup.configure_logging`).

## Library use

- `asteroidnet.state`: `State`, `Input`, `Player`, `Bullet`, `Asteroid`, the
  world update, interpolation (`lerp`) and the binary `encode`/`decode`.
- `asteroidnet.vec`: `Vec2` and angle helpers.
- `asteroidnet.jitter`: `InputBuffer`, indexed inputs kept until acknowledged.
- `asteroidnet.datagram`: `Datagram`, a frame with a one-byte version and a
  16-bit flag word.
- `asteroidnet.mcp`: the async `listen` and `dial`, returning a `Listener`
  and a `Session`. Each session has a one-slot inbox and outbox, so messages
  that arrive while the inbox is full are dropped.
- `asteroidnet.simulation.Simulation` and `asteroidnet.game.Game`: the server
  and client loops, independent of the window code in `asteroidnet.cli`.

An echo server and a client for it:

```python
import asyncio
from asteroidnet.mcp import ClosedError, dial, listen

async def serve():
    listener = await listen("127.0.0.1:7777")
    session = await listener.accept()
    try:
        while True:
            await session.send(await session.receive())
    except ClosedError:
        pass  # the client left
    finally:
        listener.close()

async def ping():
    session = await dial("127.0.0.1:7777")
    await session.send(b"ping")
    print(await session.receive())
    session.close()
```

`Listener.close` and `Session.close` are plain methods, not coroutines; a
second close raises `ClosedError`.

## Limitations

- Ships, asteroids and bullets are drawn as simple polygons and rectangles;
  there are no sprite images.
- Join and leave datagrams are sent once and never acknowledged or retried,
  so a lost join leaves the client with no session on the server.
- There is no authentication: a client is identified only by its address.