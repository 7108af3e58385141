"""Signed-URL upload with body-encoding and transport fallback.

Some runtimes and proxies reject particular request body shapes. The uploader
tries each body encoding on each transport, in order, and stops at the first
attempt that gets an HTTP response. An HTTP response that is not 2xx is the
storage service's decision and is raised at once; only transport failures
move on to the next attempt.
"""

import asyncio
import io
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass

import httpcore
import httpx

from shakenbake.core.errors import ErrorCode, ShakeNbakeError
from shakenbake.logging.logger import Log

UploadBody = bytes | AsyncIterator[bytes]
UploadTransport = Callable[[str, dict[str, str], UploadBody], Awaitable[int]]

FORBIDDEN_UPLOAD_HEADERS = frozenset({"host", "content-length", "connection", "accept-encoding"})
DEFAULT_CACHE_CONTROL = "public, max-age=31536000"
BUFFER_CHUNK_SIZE = 64 * 1024


class UploadTransportError(Exception):
    """A transport could not deliver the request (no HTTP response received)."""


@dataclass(frozen=True)
class BodyEncoding:
    name: str
    build: Callable[[bytes], UploadBody]


async def _iter_buffer(data: bytes) -> AsyncIterator[bytes]:
    view = memoryview(data)
    for offset in range(0, len(view), BUFFER_CHUNK_SIZE):
        yield bytes(view[offset : offset + BUFFER_CHUNK_SIZE])


async def _iter_blob(data: bytes) -> AsyncIterator[bytes]:
    yield io.BytesIO(data).read()


# Each build call returns a fresh body; streamed bodies are single use.
BODY_ENCODINGS: tuple[BodyEncoding, ...] = (
    BodyEncoding("bytes", bytes),
    BodyEncoding("buffer", _iter_buffer),
    BodyEncoding("blob", _iter_blob),
)


def build_upload_headers(
    signed_headers: list[tuple[str, str]],
    content_type: str,
) -> dict[str, str]:
    """Merge signed headers over the defaults, dropping transport-owned headers."""
    headers = {"Content-Type": content_type, "Cache-Control": DEFAULT_CACHE_CONTROL}
    for key, value in signed_headers:
        if key.lower() in FORBIDDEN_UPLOAD_HEADERS:
            continue
        for existing in [k for k in headers if k.lower() == key.lower()]:
            del headers[existing]
        headers[key] = value
    return headers


class HttpxUploadTransport:
    """Primary transport: the adapter's shared ``httpx.AsyncClient``."""

    name = "httpx"

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def __call__(self, url: str, headers: dict[str, str], body: UploadBody) -> int:
        try:
            response = await self._client.put(url, headers=headers, content=body)
        except (httpx.TransportError, httpx.StreamError, TypeError, RuntimeError) as exc:
            raise UploadTransportError(f"httpx: {exc!r}") from exc
        return response.status_code


class HttpcoreUploadTransport:
    """Fallback transport: a bare ``httpcore`` pool, bounded by a timeout."""

    name = "httpcore"

    def __init__(self, timeout_seconds: float = 30.0) -> None:
        self._timeout_seconds = timeout_seconds

    async def __call__(self, url: str, headers: dict[str, str], body: UploadBody) -> int:
        try:
            return await asyncio.wait_for(self._send(url, headers, body), self._timeout_seconds)
        except (
            httpcore.NetworkError,
            httpcore.TimeoutException,
            httpcore.ProtocolError,
            httpcore.UnsupportedProtocol,
            asyncio.TimeoutError,
            TypeError,
            RuntimeError,
        ) as exc:
            raise UploadTransportError(f"httpcore: {exc!r}") from exc

    @staticmethod
    async def _send(url: str, headers: dict[str, str], body: UploadBody) -> int:
        async with httpcore.AsyncConnectionPool() as pool:
            response = await pool.request(
                "PUT", url, headers=list(headers.items()), content=body
            )
            return response.status


class SignedUploader:
    """PUTs bytes to a signed URL, trying encodings x transports in order."""

    def __init__(
        self,
        transports: list[UploadTransport],
        encodings: tuple[BodyEncoding, ...] = BODY_ENCODINGS,
    ) -> None:
        if not transports:
            raise ValueError("SignedUploader needs at least one transport")
        self._transports = transports
        self._encodings = encodings

    async def put(self, upload_url: str, data: bytes, headers: dict[str, str]) -> None:
        """Upload ``data``.

        Raises:
            ShakeNbakeError: UPLOAD_FAILED for a non-2xx response (raised at
                once) or when every attempt failed at the transport level.
        """
        last_error: UploadTransportError | None = None
        for encoding in self._encodings:
            for transport in self._transports:
                transport_name = getattr(transport, "name", type(transport).__name__)
                try:
                    status = await transport(upload_url, dict(headers), encoding.build(data))
                except UploadTransportError as exc:
                    Log.debug(
                        f"Upload attempt failed (encoding={encoding.name}, "
                        f"transport={transport_name}): {exc}"
                    )
                    last_error = exc
                    continue

                if 200 <= status < 300:
                    Log.debug(
                        f"Uploaded {len(data)} bytes (encoding={encoding.name}, "
                        f"transport={transport_name})"
                    )
                    return
                raise ShakeNbakeError(
                    f"File upload to Linear storage failed (HTTP {status})",
                    ErrorCode.UPLOAD_FAILED,
                    retryable=False,
                )

        raise ShakeNbakeError(
            "Network error during file upload to Linear storage",
            ErrorCode.UPLOAD_FAILED,
            original_error=last_error,
        ) from last_error
