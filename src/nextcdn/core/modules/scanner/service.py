"""ClamAV client speaking the clamd INSTREAM protocol over TCP."""

import asyncio
import struct

import structlog

from nextcdn.core.core import Service
from nextcdn.errors import ScanError

logger = structlog.get_logger(__name__)

CHUNK_SIZE = 64 * 1024


def parse_scan_response(response: bytes) -> bool:
    """Interpret a clamd reply.

    Args:
        response: Raw reply, e.g. b"stream: OK\\0"

    Returns:
        True if the stream is clean, False if a signature matched

    Raises:
        ScanError: If clamd reported an error or the reply is not recognised
    """
    text = response.rstrip(b"\0\n").decode("utf-8", errors="replace").strip()
    if text.endswith("OK"):
        return True
    if text.endswith("FOUND"):
        return False
    raise ScanError(f"Unexpected ClamAV response: {text!r}")


class ScannerService(Service):
    """Scans uploads for malware before they reach the object store."""

    def __init__(self, host: str, port: int, timeout: float, enabled: bool = True) -> None:
        super().__init__()
        self._host = host
        self._port = port
        self._timeout = timeout
        self._enabled = enabled

    async def scan(self, data: bytes) -> bool:
        """Return True if data is clean.

        Raises:
            ScanError: If the scanner is unreachable, times out or cannot produce a verdict
        """
        if not self._enabled:
            return True
        logger.debug("clamav_scan_started", size=len(data))
        try:
            response = await asyncio.wait_for(self._instream(data), timeout=self._timeout)
        except (OSError, TimeoutError, asyncio.IncompleteReadError) as e:
            raise ScanError(f"Failed to scan file with ClamAV: {e!r}") from e
        clean = parse_scan_response(response)
        logger.debug("clamav_scan_finished", clean=clean)
        return clean

    async def _instream(self, data: bytes) -> bytes:
        reader, writer = await asyncio.open_connection(self._host, self._port)
        try:
            writer.write(b"zINSTREAM\0")
            for offset in range(0, len(data), CHUNK_SIZE):
                chunk = data[offset : offset + CHUNK_SIZE]
                writer.write(struct.pack(">I", len(chunk)) + chunk)
                await writer.drain()
            writer.write(struct.pack(">I", 0))
            await writer.drain()
            return await reader.readuntil(b"\0")
        finally:
            writer.close()
            await writer.wait_closed()
