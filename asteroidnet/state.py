"""Game world state: players, bullets, asteroids, and their wire format."""

from __future__ import annotations

import dataclasses
import math
import random
import struct
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import BinaryIO

from asteroidnet.vec import Vec2, head_vec2, rlerp, wrap_angle

SCREEN_WIDTH = 1920
SCREEN_HEIGHT = 1080

PLAYER_WIDTH = 80
PLAYER_HEIGHT = 80

ASTEROID_WIDTH = 60
ASTEROID_HEIGHT = 60

PLAYER_ANG_VEL = 4.0
PLAYER_ANG_VEL_SHOOTING = 1.5
PLAYER_ACCEL = 500.0
PLAYER_MAX_SPEED = 400.0
PLAYER_SCORE_LOSS = 10

BULLET_SPEED = 1200.0
BULLET_COOLDOWN = 0.2

ASTEROID_TIMEOUT = 2.0
ASTEROID_DIR_RANGE = 0.75 * math.pi
ASTEROID_SCORE = 1
ASTEROID_SPEED = 100.0

_U32 = 0xFFFFFFFF
_U16 = 0xFFFF


class DecodeError(ValueError):
    """Raised when encoded data is truncated."""


def _read(reader: BinaryIO, fmt: str) -> tuple:
    size = struct.calcsize(fmt)
    data = reader.read(size)
    if len(data) != size:
        raise DecodeError(f"expected {size} bytes, got {len(data)}")
    return struct.unpack(fmt, data)


def _read_records(reader: BinaryIO, fmt: str) -> list[tuple]:
    (count,) = _read(reader, ">H")
    return [_read(reader, fmt) for _ in range(count)]


def _in_bounds(v: Vec2) -> bool:
    return 0 <= v.x <= SCREEN_WIDTH and 0 <= v.y <= SCREEN_HEIGHT


@dataclass(frozen=True, slots=True)
class Input:
    """Keys held by a player during one tick. The default input does nothing."""

    left: bool = False
    down: bool = False
    up: bool = False
    right: bool = False
    space: bool = False

    def encode(self, out: BinaryIO) -> None:
        bits = (
            self.left << 0
            | self.down << 1
            | self.up << 2
            | self.right << 3
            | self.space << 4
        )
        out.write(bytes((bits,)))

    @classmethod
    def decode(cls, reader: BinaryIO) -> Input:
        data = reader.read(1)
        if not data:
            raise DecodeError("expected 1 byte, got 0")
        bits = data[0]
        return cls(
            left=bool(bits & 1 << 0),
            down=bool(bits & 1 << 1),
            up=bool(bits & 1 << 2),
            right=bool(bits & 1 << 3),
            space=bool(bits & 1 << 4),
        )


_NO_INPUT = Input()


@dataclass(slots=True)
class Bullet:
    id: int
    trans: Vec2 = Vec2()
    rotation: float = 0.0

    def lerp(self, other: Bullet, t: float) -> Bullet:
        return dataclasses.replace(self, trans=self.trans.lerp(other.trans, t))


@dataclass(slots=True)
class Asteroid:
    id: int
    trans: Vec2 = Vec2()
    vel: Vec2 = Vec2()
    ang_vel: float = 0.0
    rotation: float = 0.0

    def lerp(self, other: Asteroid, t: float) -> Asteroid:
        return dataclasses.replace(
            self,
            trans=self.trans.lerp(other.trans, t),
            rotation=rlerp(self.rotation, other.rotation, t),
        )


@dataclass(slots=True)
class Player:
    id: int
    trans: Vec2 = Vec2()
    vel: Vec2 = Vec2()
    accel: Vec2 = Vec2()
    rotation: float = 0.0
    last_bullet: float = -math.inf

    def lerp(self, other: Player, t: float) -> Player:
        return dataclasses.replace(
            self,
            trans=self.trans.lerp(other.trans, t),
            rotation=rlerp(self.rotation, other.rotation, t),
        )


def _lerp_by_id(mine: list, theirs: list, t: float) -> list:
    by_id = {item.id: item for item in theirs}
    return [item.lerp(by_id[item.id], t) if item.id in by_id else item for item in mine]


@dataclass
class State:
    """The whole game world."""

    total_score: int = 0
    players: list[Player] = field(default_factory=list)
    bullets: list[Bullet] = field(default_factory=list)
    asteroids: list[Asteroid] = field(default_factory=list)

    next_player_id: int = 1
    next_bullet_id: int = 1
    next_asteroid_id: int = 1
    id_to_addr: dict[int, str] = field(default_factory=dict)
    last_asteroid: float = -math.inf

    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)
    clock: Callable[[], float] = field(default=time.monotonic, repr=False, compare=False)

    @classmethod
    def initial(cls) -> State:
        return cls()

    def add_player(self, addr: str) -> None:
        self.id_to_addr[self.next_player_id] = addr
        self.players.append(
            Player(
                id=self.next_player_id,
                trans=Vec2(
                    SCREEN_WIDTH * self.rng.random(),
                    SCREEN_HEIGHT * self.rng.random(),
                ),
            )
        )
        self.next_player_id = (self.next_player_id + 1) & _U16

    def remove_player(self, addr: str) -> None:
        for position, player in enumerate(self.players):
            if self.id_to_addr.get(player.id) == addr:
                del self.players[position]
                if player.id != 0:
                    self.id_to_addr.pop(player.id, None)
                return

    def update(self, delta: float, inputs: Mapping[str, Input]) -> None:
        """Advance the world by ``delta`` seconds given each address's input."""
        dt = delta
        now = self.clock()

        for player in self.players:
            self._update_player(player, inputs.get(self.id_to_addr.get(player.id, ""), _NO_INPUT), dt, now)

        for bullet in self.bullets:
            bullet.trans = head_vec2(1.5 * math.pi + bullet.rotation).mul(BULLET_SPEED * dt).add(bullet.trans)
        self.bullets = [b for b in self.bullets if _in_bounds(b.trans)]

        if now - self.last_asteroid > ASTEROID_TIMEOUT:
            self.asteroids.append(self._spawn_asteroid())
            self.next_asteroid_id = (self.next_asteroid_id + 1) & _U32
            self.last_asteroid = now

        for asteroid in self.asteroids:
            asteroid.trans = asteroid.vel.mul(dt).add(asteroid.trans)
            asteroid.rotation = wrap_angle(asteroid.ang_vel * dt + asteroid.rotation)
        self.asteroids = [a for a in self.asteroids if _in_bounds(a.trans)]

        hit_bullets: set[int] = set()
        hit_asteroids: set[int] = set()
        for bi, bullet in enumerate(self.bullets):
            for ai, asteroid in enumerate(self.asteroids):
                if bullet.trans.sub(asteroid.trans).magnitude() <= ASTEROID_WIDTH:
                    hit_bullets.add(bi)
                    hit_asteroids.add(ai)
                    self.total_score = (self.total_score + ASTEROID_SCORE) & _U32
        self.bullets = [b for i, b in enumerate(self.bullets) if i not in hit_bullets]
        self.asteroids = [a for i, a in enumerate(self.asteroids) if i not in hit_asteroids]

        hit_players: set[int] = set()
        hit_asteroids = set()
        for pi, player in enumerate(self.players):
            for ai, asteroid in enumerate(self.asteroids):
                if player.trans.sub(asteroid.trans).magnitude() <= ASTEROID_WIDTH + PLAYER_WIDTH:
                    hit_players.add(pi)
                    hit_asteroids.add(ai)
                    self.total_score = max(0, self.total_score - PLAYER_SCORE_LOSS)
        self.players = [p for i, p in enumerate(self.players) if i not in hit_players]
        self.asteroids = [a for i, a in enumerate(self.asteroids) if i not in hit_asteroids]

    def _update_player(self, player: Player, inp: Input, dt: float, now: float) -> None:
        forward = float(inp.down) - float(inp.up)
        rotation = float(inp.right) - float(inp.left)
        rotation *= PLAYER_ANG_VEL_SHOOTING if inp.space else PLAYER_ANG_VEL
        player.rotation = wrap_angle(rotation * dt + player.rotation)
        player.accel = head_vec2(0.5 * math.pi + player.rotation).mul(PLAYER_ACCEL * forward)

        player.trans = player.accel.mul(0.5 * dt * dt).add(player.vel.mul(dt)).add(player.trans)
        player.vel = player.accel.mul(dt).add(player.vel)

        x, y = player.trans.x, player.trans.y
        vx, vy = player.vel.x, player.vel.y
        if x < 0:
            x, vx = 0.0, 0.0
        elif x > SCREEN_WIDTH:
            x, vx = float(SCREEN_WIDTH), 0.0
        if y < 0:
            y, vy = 0.0, 0.0
        elif y > SCREEN_HEIGHT:
            y, vy = float(SCREEN_HEIGHT), 0.0
        player.trans = Vec2(x, y)
        player.vel = Vec2(vx, vy)
        if player.vel.magnitude() > PLAYER_MAX_SPEED:
            player.vel = player.vel.normalize().mul(PLAYER_MAX_SPEED)

        if inp.space and now - player.last_bullet > BULLET_COOLDOWN:
            self.bullets.append(Bullet(id=self.next_bullet_id, trans=player.trans, rotation=player.rotation))
            self.next_bullet_id = (self.next_bullet_id + 1) & _U32
            player.last_bullet = now

    def _spawn_asteroid(self) -> Asteroid:
        rng = self.rng
        match rng.randrange(4):
            case 0:  # top edge, heading down
                trans = Vec2(SCREEN_WIDTH * rng.random(), 10.0)
                direction = ASTEROID_DIR_RANGE * (rng.random() - 0.5) + 0.5 * math.pi
            case 1:  # bottom edge, heading up
                trans = Vec2(SCREEN_WIDTH * rng.random(), SCREEN_HEIGHT - 10.0)
                direction = ASTEROID_DIR_RANGE * (rng.random() - 0.5) - 0.5 * math.pi
            case 2:  # left edge, heading right
                trans = Vec2(10.0, SCREEN_HEIGHT * rng.random())
                direction = ASTEROID_DIR_RANGE * (rng.random() - 0.5)
            case _:  # right edge, heading left
                trans = Vec2(SCREEN_WIDTH - 10.0, SCREEN_HEIGHT * rng.random())
                direction = ASTEROID_DIR_RANGE * (rng.random() - 0.5) - math.pi
        return Asteroid(
            id=self.next_asteroid_id,
            trans=trans,
            vel=head_vec2(direction).mul(ASTEROID_SPEED),
            ang_vel=math.pi * (rng.random() - 0.5),
            rotation=2 * math.pi * (rng.random() - 0.5),
        )

    def lerp(self, other: State, t: float) -> State:
        """Interpolate every entity towards the entity with the same id in ``other``."""
        return dataclasses.replace(
            self,
            players=_lerp_by_id(self.players, other.players, t),
            bullets=_lerp_by_id(self.bullets, other.bullets, t),
            asteroids=_lerp_by_id(self.asteroids, other.asteroids, t),
        )

    def encode(self, out: BinaryIO) -> None:
        out.write(struct.pack(">I", self.total_score & _U32))
        out.write(struct.pack(">H", len(self.players) & _U16))
        for player in self.players:
            out.write(
                struct.pack(
                    ">HHHf",
                    player.id & _U16,
                    int(player.trans.x) & _U16,
                    int(player.trans.y) & _U16,
                    player.rotation,
                )
            )
        for items in (self.bullets, self.asteroids):
            out.write(struct.pack(">H", len(items) & _U16))
            for item in items:
                out.write(
                    struct.pack(
                        ">IHHf",
                        item.id & _U32,
                        int(item.trans.x) & _U16,
                        int(item.trans.y) & _U16,
                        item.rotation,
                    )
                )

    @classmethod
    def decode(cls, reader: BinaryIO) -> State:
        (total_score,) = _read(reader, ">I")
        players = [
            Player(id=pid, trans=Vec2(float(x), float(y)), rotation=rot)
            for pid, x, y, rot in _read_records(reader, ">HHHf")
        ]
        bullets = [
            Bullet(id=bid, trans=Vec2(float(x), float(y)), rotation=rot)
            for bid, x, y, rot in _read_records(reader, ">IHHf")
        ]
        asteroids = [
            Asteroid(id=aid, trans=Vec2(float(x), float(y)), rotation=rot)
            for aid, x, y, rot in _read_records(reader, ">IHHf")
        ]
        return cls(total_score=total_score, players=players, bullets=bullets, asteroids=asteroids)