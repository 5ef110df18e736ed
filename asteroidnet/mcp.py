"""A small session protocol over UDP.

A client joins a listener with a join datagram and leaves it with a leave
datagram. Between the two, each side holds a ``Session`` with a one-slot
inbox and a one-slot outbox, so a slow reader drops messages rather than
letting them pile up.
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import socket
from collections.abc import Awaitable
from typing import Any, TypeVar, cast

from asteroidnet.datagram import HEADER_SIZE, Datagram, ShortDatagramError

VERSION = 1
FLAG_JOIN = 1 << 0
FLAG_LEAVE = 1 << 1

# Keeps a datagram within 512 bytes to avoid fragmentation.
DEFAULT_DATA_SIZE = 512 - HEADER_SIZE

_CLOSED_MESSAGE = "use of closed network connection"

_DISCARD = logging.Logger("asteroidnet.mcp.discard")
_DISCARD.addHandler(logging.NullHandler())

_T = TypeVar("_T")


class ClosedError(Exception):
    """Raised when a closed listener or session is used."""

    def __init__(self, message: str = _CLOSED_MESSAGE) -> None:
        super().__init__(message)


class _HandleError(Exception):
    """A received datagram could not be acted upon."""


def _split_host_port(addr: str) -> tuple[str, int | str]:
    if addr.startswith("["):
        end = addr.find("]")
        if end < 0:
            raise ValueError(f"address {addr}: missing ']' in address")
        host, rest = addr[1:end], addr[end + 1 :]
        if not rest.startswith(":"):
            raise ValueError(f"address {addr}: missing port in address")
        port = rest[1:]
    else:
        host, sep, port = addr.rpartition(":")
        if not sep:
            raise ValueError(f"address {addr}: missing port in address")
        if ":" in host:
            raise ValueError(f"address {addr}: too many colons in address")
    if not port:
        return host, 0
    return host, int(port) if port.isdigit() else port


def _format_addr(sockaddr: Any) -> str:
    host, port = sockaddr[0], sockaddr[1]
    return f"[{host}]:{port}" if ":" in host else f"{host}:{port}"


def _loopback_if_unspecified(sockaddr: tuple) -> tuple:
    host = sockaddr[0]
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        return sockaddr
    if not ip.is_unspecified:
        return sockaddr
    loopback = "::1" if ip.version == 6 else "127.0.0.1"
    return (loopback, *sockaddr[1:])


def _check_data_size(data_size: int) -> None:
    if data_size < 0:
        raise ValueError("provision of negative value as size")


async def _race(awaitable: Awaitable[_T], die: asyncio.Event) -> _T:
    """Await ``awaitable`` unless ``die`` is set first, then raise ClosedError."""
    work = asyncio.ensure_future(awaitable)
    stop = asyncio.ensure_future(die.wait())
    try:
        await asyncio.wait((work, stop), return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (work, stop):
            if not task.done():
                task.cancel()
    if work.done() and not work.cancelled():
        return work.result()
    raise ClosedError()


class _Protocol(asyncio.DatagramProtocol):
    def __init__(self, listener: Listener) -> None:
        self._listener = listener

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self._listener._transport = cast(asyncio.DatagramTransport, transport)

    def datagram_received(self, data: bytes, addr: Any) -> None:
        self._listener._receive_datagram(data, addr)

    def error_received(self, exc: Exception) -> None:
        self._listener._logger.warning(
            "failed to read from connection", extra={"error": exc}
        )


class Listener:
    """A UDP endpoint that multiplexes datagrams into per-peer sessions.

    Create one with ``listen``; ``dial`` creates one privately for a client.
    """

    def __init__(self, *, dial: bool, data_size: int, logger: logging.Logger) -> None:
        self._dial = dial
        self._data_size = data_size
        self._logger = logger
        self._transport: asyncio.DatagramTransport | None = None
        self._sessions: dict[str, Session] = {}
        self._accepted: asyncio.Queue[Session] = asyncio.Queue()
        self._die = asyncio.Event()

    def local_addr(self) -> str:
        """The bound address as ``host:port``."""
        assert self._transport is not None
        return _format_addr(self._transport.get_extra_info("sockname"))

    async def accept(self) -> Session:
        """Wait for the next peer to join."""
        if self._die.is_set():
            raise ClosedError()
        return await _race(self._accepted.get(), self._die)

    async def broadcast(self, data: bytes) -> None:
        """Queue ``data`` on the outbox of every current session."""
        if self._die.is_set():
            raise ClosedError()
        payload = bytes(data)
        sessions = list(self._sessions.values())
        if not sessions:
            return
        await _race(
            asyncio.gather(*(session._offer(payload) for session in sessions)),
            self._die,
        )

    def close(self) -> None:
        """Close every accepted session, then the socket.

        Raises ClosedError if the listener was already closed.
        """
        if self._die.is_set():
            raise ClosedError()
        self._die.set()

        errors: list[Exception] = []
        if not self._dial:
            for session in list(self._sessions.values()):
                try:
                    session.close()
                except Exception as exc:  # collected and re-raised below
                    errors.append(exc)

        if self._transport is not None:
            self._transport.close()
        if errors:
            raise ExceptionGroup("close session", errors)

    def _receive_datagram(self, data: bytes, addr: Any) -> None:
        data = data[: HEADER_SIZE + self._data_size]
        try:
            datagram = Datagram.from_bytes(data)
        except ShortDatagramError as exc:
            self._logger.warning("failed to unmarshal datagram", extra={"error": exc})
            return
        try:
            self._handle_datagram(addr, datagram)
        except _HandleError as exc:
            self._logger.warning("failed to handle datagram", extra={"error": exc})

    def _handle_datagram(self, addr: Any, datagram: Datagram) -> None:
        if datagram.version != VERSION:
            raise _HandleError(f"version {datagram.version}: version is not supported")
        joining = datagram.flags & FLAG_JOIN
        leaving = datagram.flags & FLAG_LEAVE
        if joining and leaving:
            raise _HandleError(f"flags {datagram.flags:08b}: unknown state")

        key = _format_addr(addr)
        if joining:
            if key in self._sessions:
                raise _HandleError(f"session {key!r}: already exists")
            session = Session(dial=False, listener=self, remote=addr)
            self._sessions[key] = session
            self._accepted.put_nowait(session)
        elif leaving:
            session = self._sessions.get(key)
            if session is None:
                raise _HandleError(f"close session {key!r}: not found")
            if not session.closed():
                try:
                    session._shutdown()
                except ClosedError as exc:
                    raise _HandleError(f"close session {key!r}: {exc}") from exc
            del self._sessions[key]
        else:
            session = self._sessions.get(key)
            if session is None:
                raise _HandleError(
                    f"deliver datagram {datagram}: session {key!r}: not found"
                )
            try:
                session._inbox.put_nowait(datagram.data)
            except asyncio.QueueFull:
                pass


class Session:
    """One peer of a listener, with a one-slot inbox and outbox."""

    def __init__(self, *, dial: bool, listener: Listener, remote: Any) -> None:
        self._dial = dial
        self._listener = listener
        self._remote = remote
        self._remote_key = _format_addr(remote)
        self._inbox: asyncio.Queue[bytes] = asyncio.Queue(maxsize=1)
        self._outbox: asyncio.Queue[bytes] = asyncio.Queue(maxsize=1)
        self._die = asyncio.Event()
        self._writer = asyncio.get_running_loop().create_task(self._write_loop())

    def __repr__(self) -> str:
        return f"Session(remote={self._remote_key!r}, closed={self.closed()})"

    async def receive(self) -> bytes:
        """Wait for the next message from the peer."""
        if self._die.is_set():
            raise ClosedError()
        return await _race(self._inbox.get(), self._die)

    def try_receive(self) -> bytes | None:
        """Return a waiting message, or None if there is none."""
        try:
            return self._inbox.get_nowait()
        except asyncio.QueueEmpty:
            return None

    async def send(self, data: bytes) -> None:
        """Wait until ``data`` fits in the outbox."""
        if self._die.is_set():
            raise ClosedError()
        await _race(self._outbox.put(bytes(data)), self._die)

    def try_send(self, data: bytes) -> bool:
        """Put ``data`` in the outbox if there is room; report whether it went in."""
        if self._die.is_set():
            return False
        try:
            self._outbox.put_nowait(bytes(data))
        except asyncio.QueueFull:
            return False
        return True

    def close(self) -> None:
        """Tell the peer we are leaving and close the session.

        A dialled session also closes its private listener. Raises
        ClosedError if the session was already closed, by either side.
        """
        if self._die.is_set():
            raise ClosedError()
        if self._listener._sessions.get(self._remote_key) is self:
            del self._listener._sessions[self._remote_key]

        errors: list[Exception] = []
        for step in (self._send_leave, self._shutdown):
            try:
                step()
            except (ClosedError, OSError) as exc:
                errors.append(exc)
        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise ExceptionGroup("close session", errors)

    def closed(self) -> bool:
        return self._die.is_set()

    def local_addr(self) -> str:
        return self._listener.local_addr()

    def remote_addr(self) -> str:
        return self._remote_key

    async def _offer(self, payload: bytes) -> None:
        try:
            await _race(self._outbox.put(payload), self._die)
        except ClosedError:
            pass

    async def _write_loop(self) -> None:
        while True:
            data = await self._outbox.get()
            transport = self._listener._transport
            if transport is None or transport.is_closing():
                return
            transport.sendto(Datagram(VERSION, 0, data).to_bytes(), self._remote)

    def _send_leave(self) -> None:
        transport = self._listener._transport
        if transport is None or transport.is_closing():
            raise ClosedError()
        transport.sendto(Datagram(VERSION, FLAG_LEAVE).to_bytes(), self._remote)

    def _shutdown(self) -> None:
        self._die.set()
        self._writer.cancel()
        if self._dial:
            try:
                self._listener.close()
            except ClosedError as exc:
                raise ClosedError(f"close listener: {exc}") from exc


async def _open(
    host: str,
    port: int | str,
    data_size: int,
    logger: logging.Logger | None,
    *,
    dial: bool,
    family: int = 0,
) -> Listener:
    loop = asyncio.get_running_loop()
    listener = Listener(dial=dial, data_size=data_size, logger=logger or _DISCARD)
    await loop.create_datagram_endpoint(
        lambda: _Protocol(listener), local_addr=(host, port), family=family
    )
    return listener


async def listen(
    laddr: str,
    data_size: int = DEFAULT_DATA_SIZE,
    logger: logging.Logger | None = None,
) -> Listener:
    """Bind a listener to ``laddr`` (``host:port``; an empty host means all interfaces)."""
    _check_data_size(data_size)
    host, port = _split_host_port(laddr)
    return await _open(host or "0.0.0.0", port, data_size, logger, dial=False)


async def dial(
    raddr: str,
    data_size: int = DEFAULT_DATA_SIZE,
    logger: logging.Logger | None = None,
) -> Session:
    """Join the listener at ``raddr`` and return the session with it."""
    _check_data_size(data_size)
    host, port = _split_host_port(raddr)
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host or None, port, type=socket.SOCK_DGRAM)
    if not infos:
        raise OSError(f"address {raddr}: no suitable address found")
    infos.sort(key=lambda info: info[0] != socket.AF_INET)
    family, _, _, _, sockaddr = infos[0]
    remote = _loopback_if_unspecified(tuple(sockaddr))
    wildcard = "::" if family == socket.AF_INET6 else "0.0.0.0"

    listener = await _open(wildcard, 0, data_size, logger, dial=True, family=family)
    assert listener._transport is not None
    listener._transport.sendto(Datagram(VERSION, FLAG_JOIN).to_bytes(), remote)

    session = Session(dial=True, listener=listener, remote=remote)
    listener._sessions[session.remote_addr()] = session
    return session