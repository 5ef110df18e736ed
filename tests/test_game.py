import io
import struct

from asteroidnet.game import Game
from asteroidnet.jitter import InputBuffer
from asteroidnet.state import SCREEN_HEIGHT, SCREEN_WIDTH, Input, Player, State
from asteroidnet.vec import Vec2


class _StubSession:
    def __init__(self):
        self.sent = []
        self.is_closed = False

    def try_send(self, data):
        self.sent.append(data)
        return True

    def closed(self):
        return self.is_closed


class _Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _state_message(index, state):
    out = io.BytesIO()
    out.write(struct.pack(">HI", 1, index))
    state.encode(out)
    return out.getvalue()


def _game():
    session = _StubSession()
    clock = _Clock()
    return Game(session, clock=clock), session, clock


def test_layout():
    game, _, _ = _game()
    assert game.layout(1, 1) == (SCREEN_WIDTH, SCREEN_HEIGHT)


def test_update_sends_buffered_inputs():
    game, session, _ = _game()
    assert game.update(Input(up=True)) is True
    assert game.update(Input(space=True)) is True
    buf = InputBuffer.decode(io.BytesIO(session.sent[-1]))
    assert buf.indices() == [0, 1]
    assert buf.inputs() == [Input(up=True), Input(space=True)]


def test_ack_discards_inputs():
    game, session, _ = _game()
    game.update(Input())
    game.update(Input())
    game.handle_message(struct.pack(">HI", 0, 0))
    game.update(Input())
    assert InputBuffer.decode(io.BytesIO(session.sent[-1])).indices() == [1, 2]


def test_closed_session_stops_updates():
    game, session, _ = _game()
    session.is_closed = True
    assert game.update(Input()) is False
    assert session.sent == []


def test_stale_and_truncated_states_are_ignored():
    game, _, _ = _game()
    game.handle_message(_state_message(0, State(total_score=5)))
    game.handle_message(b"\x00\x01\x00\x00\x00\x05\x00")
    assert game.last_state_index == 0


def test_snapshots_are_interpolated():
    game, _, clock = _game()
    first = State(players=[Player(id=1, trans=Vec2(100, 200))])
    second = State(players=[Player(id=1, trans=Vec2(300, 400))])
    clock.now = 10.0
    game.handle_message(_state_message(1, first))
    game.update(Input())
    assert game.state.players == []

    clock.now = 11.0
    game.handle_message(_state_message(2, second))
    assert game.last_state_index == 2
    game.update(Input())
    assert game.state.players[0].trans == Vec2(100, 200)

    clock.now = 12.0
    game.update(Input())
    assert game.state.players[0].trans == Vec2(300, 400)