import pytest

from asteroidnet.datagram import HEADER_SIZE, Datagram, ShortDatagramError


@pytest.mark.parametrize(
    ("version", "flags", "data"),
    [
        (2, 0b0100000100010000, b""),
        (24, 0b0110010000101000, b""),
        (192, 0b0011001100000000, bytes([1])),
        (24, 0b0010001000001000, b"Hello, world"),
        (255, 0b0100000010000011, "👋".encode()),
    ],
)
def test_round_trip(version, flags, data):
    orig = Datagram(version=version, flags=flags, data=data)
    parsed = Datagram.from_bytes(orig.to_bytes())
    assert parsed == orig
    assert len(orig.to_bytes()) == HEADER_SIZE + len(data)


def test_wire_layout():
    assert Datagram(1, 1).to_bytes() == b"\x01\x00\x01"
    assert Datagram(1, 2, b"ab").to_bytes() == b"\x01\x00\x02ab"


def test_from_bytes_copies_payload():
    raw = bytearray(b"\x01\x00\x00xyz")
    parsed = Datagram.from_bytes(raw)
    raw[3] = ord("q")
    assert parsed.data == b"xyz"


@pytest.mark.parametrize("raw", [b"", b"\x01", b"\x01\x00"])
def test_short_datagram(raw):
    with pytest.raises(ShortDatagramError, match="short datagram"):
        Datagram.from_bytes(raw)


def test_short_datagram_is_value_error():
    with pytest.raises(ValueError):
        Datagram.from_bytes(b"\x01")


def test_str():
    assert str(Datagram(2, 0b0100000100010000, b"")) == "Datagram(v2:0100000100010000:)"
    assert str(Datagram(1, 1, b"\x01\xff")) == "Datagram(v1:00000001:01ff)"