"""Drawing a world state onto a pygame surface."""

from __future__ import annotations

import math
from collections.abc import Iterable

import pygame

from asteroidnet.state import (
    ASTEROID_HEIGHT,
    ASTEROID_WIDTH,
    PLAYER_HEIGHT,
    PLAYER_WIDTH,
    State,
)
from asteroidnet.vec import Vec2

BACKGROUND_COLOR = (0, 0, 0)
BULLET_COLOR = (255, 220, 80)
ASTEROID_COLOR = (150, 130, 110)
PLAYER_COLOR = (90, 200, 255)
TEXT_COLOR = (255, 255, 255)

BULLET_SIZE = 4

# The ship points towards negative y when its rotation is zero.
_SHIP = (
    (0.0, -PLAYER_HEIGHT / 2),
    (-PLAYER_WIDTH * 3 / 8, PLAYER_HEIGHT / 2),
    (PLAYER_WIDTH * 3 / 8, PLAYER_HEIGHT / 2),
)
_ROCK = tuple(
    (
        ASTEROID_WIDTH / 2 * math.cos(2 * math.pi * k / 8),
        ASTEROID_HEIGHT / 2 * math.sin(2 * math.pi * k / 8),
    )
    for k in range(8)
)


def _place(
    shape: Iterable[tuple[float, float]], centre: Vec2, rotation: float
) -> list[tuple[float, float]]:
    cos, sin = math.cos(rotation), math.sin(rotation)
    return [
        (centre.x + px * cos - py * sin, centre.y + px * sin + py * cos)
        for px, py in shape
    ]


def draw_state(surface: pygame.Surface, state: State, font: pygame.font.Font | None) -> None:
    """Draw bullets, asteroids, players and, given a font, ids and the score."""
    for bullet in state.bullets:
        rect = pygame.Rect(int(bullet.trans.x), int(bullet.trans.y), BULLET_SIZE, BULLET_SIZE)
        pygame.draw.rect(surface, BULLET_COLOR, rect)

    for asteroid in state.asteroids:
        pygame.draw.polygon(surface, ASTEROID_COLOR, _place(_ROCK, asteroid.trans, asteroid.rotation))

    for player in state.players:
        pygame.draw.polygon(surface, PLAYER_COLOR, _place(_SHIP, player.trans, player.rotation))
        if font is not None:
            label = font.render(str(player.id), True, TEXT_COLOR)
            surface.blit(label, (player.trans.x - PLAYER_WIDTH, player.trans.y - PLAYER_HEIGHT))

    if font is not None:
        score = font.render(f"Total Score: {state.total_score}", True, TEXT_COLOR)
        surface.blit(score, (0, 0))