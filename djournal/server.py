"""TCP broker that accepts client connections and acknowledges what they send."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from djournal.commitlog import Log

logger = logging.getLogger(__name__)

ACK = b"ACK\n"
READ_SIZE = 1024


def _parse_address(address: str) -> tuple[str, int]:
    host, sep, port_text = address.rpartition(":")
    if not sep or not host or not port_text.isdigit():
        raise ValueError(f"invalid address {address!r}, expected host:port")
    port = int(port_text)
    if port > 65535:
        raise ValueError(f"invalid port in address {address!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, port


class Handler:
    """Serves one client connection: every chunk received is answered with an ACK."""

    def __init__(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter, log: Log
    ) -> None:
        self.reader = reader
        self.writer = writer
        self.log = log

    async def handle_connection(self) -> int:
        """Acknowledge incoming data until the client closes; return the number of ACKs sent."""
        acknowledged = 0
        while True:
            try:
                data = await self.reader.read(READ_SIZE)
            except OSError as exc:
                logger.error("Error reading from stream: %s", exc)
                raise
            if not data:
                logger.info("Client closed connection (EOF).")
                return acknowledged
            logger.info(
                "Received %d bytes: %r", len(data), data.decode("utf-8", "replace")
            )
            try:
                self.writer.write(ACK)
                await self.writer.drain()
            except OSError as exc:
                logger.error("Failed to write acknowledgment: %s", exc)
                raise
            acknowledged += 1


class Server:
    """Listens on ``host:port`` and starts a Handler for each connection."""

    def __init__(self, address: str, log: Log) -> None:
        self.address = address
        self.log = log
        self._host, self._port = _parse_address(address)
        self._server: asyncio.base_events.Server | None = None
        self._writers: set[asyncio.StreamWriter] = set()
        self._closed = asyncio.Event()

    async def bind(self) -> None:
        """Bind the listening socket without accepting connections yet."""
        if self._server is not None:
            return
        self._server = await asyncio.start_server(
            self._on_connect, self._host, self._port, start_serving=False
        )
        logger.info("Broker server bound to %s", self.address)

    @property
    def local_address(self) -> tuple[str, int]:
        """The (host, port) the listening socket is bound to."""
        if self._server is None or not self._server.sockets:
            raise RuntimeError("server is not bound")
        host, port = self._server.sockets[0].getsockname()[:2]
        return host, port

    async def run(self) -> None:
        """Accept connections until ``close`` is called."""
        await self.bind()
        assert self._server is not None
        logger.info("Broker server listening on %s:%d", *self.local_address)
        await self._server.start_serving()
        await self._closed.wait()
        await self._server.wait_closed()

    def close(self) -> None:
        """Stop accepting connections and drop the open ones."""
        if self._server is not None:
            self._server.close()
        for writer in list(self._writers):
            writer.close()
        self._closed.set()

    async def _on_connect(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        peer = writer.get_extra_info("peername")
        logger.info("Accepted new connection from: %s", peer)
        self._writers.add(writer)
        try:
            await Handler(reader, writer, self.log).handle_connection()
        except Exception as exc:
            logger.error("Error handling connection from %s: %s", peer, exc)
        finally:
            self._writers.discard(writer)
            writer.close()
            with contextlib.suppress(OSError):
                await writer.wait_closed()
            logger.info("Connection with %s closed.", peer)