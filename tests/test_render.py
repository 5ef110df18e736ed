import pygame

from asteroidnet.render import (
    ASTEROID_COLOR,
    BACKGROUND_COLOR,
    BULLET_COLOR,
    PLAYER_COLOR,
    draw_state,
)
from asteroidnet.state import SCREEN_HEIGHT, SCREEN_WIDTH, Asteroid, Bullet, Player, State
from asteroidnet.vec import Vec2


def _surface():
    surface = pygame.Surface((SCREEN_WIDTH, SCREEN_HEIGHT))
    surface.fill(BACKGROUND_COLOR)
    return surface


def test_empty_state_leaves_surface_blank():
    surface = _surface()
    draw_state(surface, State(), None)
    assert tuple(surface.get_at((960, 540)))[:3] == BACKGROUND_COLOR


def test_bullet_is_drawn_at_its_position():
    surface = _surface()
    draw_state(surface, State(bullets=[Bullet(id=1, trans=Vec2(100, 100))]), None)
    assert tuple(surface.get_at((101, 101)))[:3] == BULLET_COLOR


def test_asteroid_covers_its_centre():
    surface = _surface()
    draw_state(surface, State(asteroids=[Asteroid(id=1, trans=Vec2(500, 300), rotation=1.0)]), None)
    assert tuple(surface.get_at((500, 300)))[:3] == ASTEROID_COLOR


def test_player_covers_its_centre():
    surface = _surface()
    draw_state(surface, State(players=[Player(id=1, trans=Vec2(800, 600), rotation=0.5)]), None)
    assert tuple(surface.get_at((800, 600)))[:3] == PLAYER_COLOR