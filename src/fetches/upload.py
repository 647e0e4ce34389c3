"""Multipart file uploads with progress reporting.

:func:`upload_file` sends one or more files, plus optional form fields, as a
``multipart/form-data`` POST. A single file goes out under the field name
``file``; a list of files goes out as ``file0``, ``file1`` and so on.

Progress is reported by wrapping the request body stream: every chunk the
transport pulls adds to the sent byte count, and ``on_progress`` receives
the percentage sent (0-100). Progress is only reported when httpx can
compute the body length up front.

:class:`Uploader` keeps one httpx client open for many uploads and can
cancel the ones still in flight.

Failures use the same taxonomy as :class:`~fetches.client.Fetches`:

- :class:`~fetches.exceptions.FetchesTimeoutError` when the upload outlives
  its timeout.
- :class:`~fetches.exceptions.FetchesNetworkError` when the transport fails.
- :class:`~fetches.exceptions.FetchesResponseError` on a non-2xx answer,
  with the decoded body attached.
- :class:`~fetches.exceptions.FetchesCancelledError` after
  :meth:`Uploader.cancel_all`.

Example::

    async with create_uploader() as uploader:
        resp = await uploader.upload(
            "https://api.example.com/files",
            Path("report.pdf"),
            fields={"folder": "reports"},
            on_progress=lambda pct: print(f"{pct:.0f}%"),
        )
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any, Callable, Optional

import httpx

from fetches.cancellation import CancellationHandle, CancellationRegistry
from fetches.client.async_client import send_with_deadline
from fetches.client.response import decode_body
from fetches.exceptions import FetchesResponseError
from fetches.interceptors import maybe_await
from fetches.models import FetchesResponse, RequestConfig

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_TIMEOUT = 30_000

ProgressCallback = Callable[[float], Any]


class _ProgressStream(httpx.AsyncByteStream):
    """Async body stream that reports the share of *total* bytes sent."""

    def __init__(
        self,
        stream: httpx.AsyncByteStream,
        total: int,
        on_progress: ProgressCallback,
    ) -> None:
        self._stream = stream
        self._total = total
        self._on_progress = on_progress

    async def __aiter__(self) -> AsyncIterator[bytes]:
        sent = 0
        async for chunk in self._stream:
            yield chunk
            sent += len(chunk)
            await maybe_await(self._on_progress(sent / self._total * 100))

    async def aclose(self) -> None:
        await self._stream.aclose()


def _file_part(value: Any) -> Any:
    if isinstance(value, Path):
        return (value.name, value.read_bytes())
    return value


def _multipart_files(file: Any) -> list[tuple[str, Any]]:
    if isinstance(file, list):
        return [(f"file{index}", _file_part(item)) for index, item in enumerate(file)]
    return [("file", _file_part(file))]


def _without_content_type(headers: Optional[dict[str, str]]) -> dict[str, str]:
    # httpx sets the multipart boundary itself.
    return {k: v for k, v in (headers or {}).items() if k.lower() != "content-type"}


async def _send_upload(
    client: httpx.AsyncClient,
    url: str,
    file: Any,
    handle: CancellationHandle,
    *,
    fields: Optional[dict[str, Any]],
    headers: Optional[dict[str, str]],
    timeout: float,
    on_progress: Optional[ProgressCallback],
) -> FetchesResponse:
    handle.raise_if_cancelled()

    sent_headers = _without_content_type(headers)
    request = client.build_request(
        "POST",
        url,
        files=_multipart_files(file),
        data=fields or None,
        headers=sent_headers,
    )

    total = int(request.headers.get("content-length", 0))
    if on_progress is not None and total > 0:
        request.stream = _ProgressStream(request.stream, total, on_progress)
    logger.debug("Uploading %d byte(s) to %s", total, url)

    response = await send_with_deadline(client, request, timeout, handle)

    data = decode_body(response)
    if not response.is_success:
        raise FetchesResponseError(response.status_code, response.reason_phrase, data, response)

    return FetchesResponse(
        data=data,
        status=response.status_code,
        status_text=response.reason_phrase,
        headers=response.headers,
        config=RequestConfig(
            url=url,
            method="POST",
            headers=sent_headers or None,
            timeout=timeout,
            request_id=handle.request_id,
        ),
        request=request,
    )


async def upload_file(
    url: str,
    file: Any,
    *,
    fields: Optional[dict[str, Any]] = None,
    headers: Optional[dict[str, str]] = None,
    timeout: float = DEFAULT_UPLOAD_TIMEOUT,
    on_progress: Optional[ProgressCallback] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FetchesResponse:
    """Upload *file* to *url* as ``multipart/form-data``.

    Args:
        url: Absolute upload URL.
        file: One file or a list of files. Each may be ``bytes``, a binary
            file object, a :class:`~pathlib.Path`, or an httpx file tuple
            such as ``(filename, content, content_type)``.
        fields: Extra form fields. List values are sent once per item.
        headers: Extra request headers. A ``Content-Type`` entry is ignored.
        timeout: Upload timeout in milliseconds.
        on_progress: Called with the percentage sent; may be async.
        transport: httpx transport; tests pass :class:`httpx.MockTransport`.

    Returns:
        The response envelope with the decoded body.

    Raises:
        FetchesTimeoutError: The upload exceeded *timeout*.
        FetchesNetworkError: The transport failed.
        FetchesResponseError: The server answered with a non-2xx status.
    """
    async with httpx.AsyncClient(transport=transport, timeout=None, follow_redirects=True) as client:
        return await _send_upload(
            client,
            url,
            file,
            CancellationHandle(uuid.uuid4().hex),
            fields=fields,
            headers=headers,
            timeout=timeout,
            on_progress=on_progress,
        )


class Uploader:
    """Reusable uploader whose in-flight uploads can be cancelled.

    Args:
        transport: httpx transport shared by every upload.
        timeout: Default upload timeout in milliseconds.
    """

    def __init__(
        self,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_UPLOAD_TIMEOUT,
    ) -> None:
        self._transport = transport
        self._timeout = timeout
        self._registry = CancellationRegistry()
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> Uploader:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cancel in-flight uploads and close the httpx client."""
        self.cancel_all()
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                transport=self._transport, timeout=None, follow_redirects=True
            )
        return self._client

    async def upload(
        self,
        url: str,
        file: Any,
        *,
        fields: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        timeout: Optional[float] = None,
        on_progress: Optional[ProgressCallback] = None,
        upload_id: Optional[str] = None,
    ) -> FetchesResponse:
        """Upload like :func:`upload_file`, tracked for :meth:`cancel_all`."""
        upload_id = upload_id or uuid.uuid4().hex
        handle = self._registry.register(upload_id)
        try:
            return await _send_upload(
                self._get_client(),
                url,
                file,
                handle,
                fields=fields,
                headers=headers,
                timeout=self._timeout if timeout is None else timeout,
                on_progress=on_progress,
            )
        finally:
            self._registry.remove(upload_id, handle)

    def active_upload_ids(self) -> list[str]:
        return self._registry.ids()

    def cancel(self, upload_id: str) -> bool:
        """Cancel one upload. Unknown ids are a no-op (``False``)."""
        return self._registry.cancel(upload_id)

    def cancel_all(self) -> int:
        """Cancel every in-flight upload and return how many were signalled."""
        return self._registry.cancel_all()


def create_uploader(**kwargs: Any) -> Uploader:
    """Create an :class:`Uploader`; see its constructor for arguments."""
    return Uploader(**kwargs)
