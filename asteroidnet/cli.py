"""Command line entry: run a server or connect to one as a client."""

from __future__ import annotations

import argparse
import asyncio
import logging
import time
from collections.abc import Sequence

import pygame

from asteroidnet.game import Game
from asteroidnet.logsetup import configure_logging
from asteroidnet.mcp import ClosedError
from asteroidnet.signals import ShutdownSignals
from asteroidnet.simulation import Simulation
from asteroidnet.state import Input

WINDOW_SIZE = (640, 360)
SERVER_TPS = 30
CLIENT_FPS = 60

_logger = logging.getLogger(__name__)


def parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="asteroids")
    parser.add_argument("-listen", "--listen", default="", help="specify address to listen on")
    parser.add_argument(
        "-connect", "--connect", default="", help="specify remote address for connecting to a server"
    )
    return parser.parse_args(argv)


class _Stop:
    def __init__(self) -> None:
        self.requested = False

    def __call__(self) -> None:
        self.requested = True


def _present(screen: pygame.Surface, canvas: pygame.Surface) -> None:
    screen.blit(pygame.transform.smoothscale(canvas, screen.get_size()), (0, 0))
    pygame.display.flip()


def _quit_requested() -> bool:
    return any(event.type == pygame.QUIT for event in pygame.event.get())


def _read_input() -> Input:
    keys = pygame.key.get_pressed()
    return Input(
        left=keys[pygame.K_a],
        down=keys[pygame.K_s],
        up=keys[pygame.K_w],
        right=keys[pygame.K_d],
        space=keys[pygame.K_SPACE],
    )


async def _pace(deadline: float) -> None:
    await asyncio.sleep(max(0.0, deadline - time.monotonic()))


async def _listen_and_simulate(addr: str, stop: _Stop) -> None:
    try:
        sim = await Simulation.start(addr)
    except (OSError, ValueError) as exc:
        _logger.error("failed to instantiate simulation", extra={"error": exc})
        return
    pygame.init()
    try:
        screen = pygame.display.set_mode(WINDOW_SIZE)
        pygame.display.set_caption("Asteroids [SERVER]")
        sim.font = pygame.font.Font(None, 60)
        canvas = pygame.Surface(sim.layout(*WINDOW_SIZE))
        dt = 1 / SERVER_TPS
        while not stop.requested and not _quit_requested():
            deadline = time.monotonic() + dt
            if not await sim.update(dt):
                break
            canvas.fill((0, 0, 0))
            sim.draw(canvas)
            _present(screen, canvas)
            await _pace(deadline)
    finally:
        try:
            sim.close()
        except Exception as exc:  # noqa: BLE001 - reported, not fatal
            _logger.error("failed to close simulation", extra={"error": exc})
        pygame.quit()


async def _connect_and_run(raddr: str, stop: _Stop) -> None:
    try:
        game = await Game.start(raddr)
    except (OSError, ValueError) as exc:
        _logger.error("failed to initialize game", extra={"error": exc})
        return
    pygame.init()
    try:
        screen = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)
        pygame.display.set_caption("Asteroids")
        game.font = pygame.font.Font(None, 60)
        canvas = pygame.Surface(game.layout(*WINDOW_SIZE))
        frame = 1 / CLIENT_FPS
        while not stop.requested and not _quit_requested():
            deadline = time.monotonic() + frame
            if not game.update(_read_input()):
                break
            canvas.fill((0, 0, 0))
            game.draw(canvas)
            _present(screen, canvas)
            await _pace(deadline)
    finally:
        try:
            game.close()
        except ClosedError:
            pass
        except Exception as exc:  # noqa: BLE001 - reported, not fatal
            _logger.error("failed to close game", extra={"error": exc})
        pygame.quit()


def main(argv: Sequence[str] | None = None) -> int:
    configure_logging()
    args = parse_args(argv)
    if not args.listen and not args.connect:
        _logger.error("please specify either a -listen flag or a -connect flag")
        return 1

    stop = _Stop()
    ShutdownSignals(stop).install()
    if args.listen:
        asyncio.run(_listen_and_simulate(args.listen, stop))
    else:
        asyncio.run(_connect_and_run(args.connect, stop))
    return 0