"""
Conditional and partial content responses over a seekable reader.

``serve_content`` turns a reader of known size into a Flask response that
honors ``If-Match``, ``If-None-Match``, ``If-Range`` and ``Range`` (single and
multiple byte ranges). There is no modification time for content served
here, so date-based preconditions never apply.
"""

import logging
import mimetypes
import secrets

from flask import Response
from werkzeug.datastructures import Headers
from werkzeug.http import parse_range_header, unquote_etag

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024

# Entity headers that must not accompany a 304
_NOT_MODIFIED_STRIP = ("Content-Type", "Content-Length", "Content-Encoding")


def serve_content(
    request,
    name: str,
    reader,
    size: int,
    headers: Headers | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Response:
    """
    Build the response for ``size`` bytes available from ``reader``.

    Args:
        request: Inbound request (method and conditional/range headers)
        name: Identity of the content, used to guess a Content-Type when the
            headers do not carry one
        reader: Seekable binary reader positioned anywhere
        size: Number of bytes of content
        headers: Response headers prepared by the caller. The ``ETag`` found
            here is the validator for conditional requests.
        chunk_size: Bytes copied from the reader per body chunk

    Returns:
        Response with one of:
        - 200 full content
        - 206 single range (Content-Range) or multipart/byteranges
        - 304 If-None-Match matched (GET/HEAD)
        - 412 If-Match failed, or If-None-Match matched on other methods
        - 416 Range unparseable or not overlapping the content

    Note:
        The body is a generator reading from ``reader`` lazily. The caller
        owns the reader and must close it when the response is closed.
    """
    headers = Headers(headers)
    etag, weak = unquote_etag(headers.get("ETag"))

    if "If-Match" in request.headers and not _if_match(request, etag, weak):
        logger.debug(f"If-Match failed for {name}")
        return _error_response(412, "precondition failed", headers)

    if "If-None-Match" in request.headers and _if_none_match(request, etag):
        if request.method in ("GET", "HEAD"):
            logger.debug(f"If-None-Match matched for {name}, not modified")
            for header in _NOT_MODIFIED_STRIP:
                headers.remove(header)
            return Response(status=304, headers=headers)
        return _error_response(412, "precondition failed", headers)

    range_header = request.headers.get("Range")
    if range_header and not _if_range(request, etag, weak):
        logger.debug(f"If-Range did not match for {name}, ignoring Range")
        range_header = None

    content_type = headers.get("Content-Type")
    if content_type is None:
        content_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
        headers["Content-Type"] = content_type

    status = 200
    sections = [(b"", 0, size)]
    send_size = size

    if range_header:
        ranges = _parse_ranges(range_header, size)
        if ranges is None:
            logger.debug(f"Unsatisfiable range {range_header!r} for {name} (size {size})")
            headers["Content-Range"] = f"bytes */{size}"
            return _error_response(416, "invalid range: failed to overlap", headers)

        if sum(length for _, length in ranges) > size:
            # Asking for more than the whole thing; just send it all
            logger.debug(f"Range {range_header!r} exceeds size {size}, serving full content")
            ranges = []

        if len(ranges) == 1:
            start, length = ranges[0]
            status = 206
            sections = [(b"", start, length)]
            send_size = length
            headers["Content-Range"] = _content_range(start, length, size)
        elif ranges:
            boundary = secrets.token_hex(16)
            status = 206
            sections, send_size = _multipart_sections(ranges, content_type, size, boundary)
            headers["Content-Type"] = f"multipart/byteranges; boundary={boundary}"

    headers["Accept-Ranges"] = "bytes"
    if "Content-Encoding" not in headers:
        headers["Content-Length"] = str(send_size)

    if request.method == "HEAD":
        body = []
    else:
        body = _copy_sections(reader, sections, chunk_size)

    return Response(body, status=status, headers=headers, direct_passthrough=True)


def _if_match(request, etag: str | None, weak: bool | None) -> bool:
    if_match = request.if_match
    if if_match.star_tag:
        return True
    return etag is not None and not weak and if_match.is_strong(etag)


def _if_none_match(request, etag: str | None) -> bool:
    if_none_match = request.if_none_match
    if if_none_match.star_tag:
        return True
    return etag is not None and if_none_match.contains_weak(etag)


def _if_range(request, etag: str | None, weak: bool | None) -> bool:
    """Whether the Range header may be honored. Only a strong ETag match counts."""
    value = request.headers.get("If-Range")
    if not value:
        return True
    if etag is None or weak or value.strip().startswith("W/"):
        return False
    return request.if_range.etag == etag


def _parse_ranges(value: str, size: int) -> list[tuple[int, int]] | None:
    """
    Resolve a Range header into ``(start, length)`` pairs within ``size``.

    Ranges are kept in request order and may overlap. Ranges starting at or
    past the end are dropped, as is the empty suffix ``-0``; suffix ranges
    are clamped to the content. Returns None when the header does not parse
    or nothing overlaps.
    """
    units, _, range_set = value.partition("=")
    if units.strip().lower() != "bytes" or not range_set.strip():
        return None

    ranges = []
    for item in range_set.split(","):
        item = item.strip()
        if not item:
            continue

        # werkzeug rejects unordered or overlapping sets, so parse each item alone
        parsed = parse_range_header(f"bytes={item}")
        if parsed is None:
            return None
        ((begin, end),) = parsed.ranges

        if item.startswith("-"):
            start = max(size + begin, 0)
            length = size - start
            if begin == 0 or length == 0:
                continue
        else:
            if begin >= size:
                continue
            stop = size if end is None else min(end, size)
            start, length = begin, stop - begin
        ranges.append((start, length))

    return ranges or None


def _content_range(start: int, length: int, size: int) -> str:
    return f"bytes {start}-{start + length - 1}/{size}"


def _multipart_sections(ranges, content_type: str, size: int, boundary: str):
    """Lay out a multipart/byteranges body as (prefix, start, length) sections."""
    sections = []
    total = 0
    for index, (start, length) in enumerate(ranges):
        part_header = (
            ("\r\n" if index else "")
            + f"--{boundary}\r\n"
            + f"Content-Type: {content_type}\r\n"
            + f"Content-Range: {_content_range(start, length, size)}\r\n"
            + "\r\n"
        ).encode("latin-1")
        sections.append((part_header, start, length))
        total += len(part_header) + length

    closing = f"\r\n--{boundary}--\r\n".encode("latin-1")
    sections.append((closing, 0, 0))
    total += len(closing)
    return sections, total


def _copy_sections(reader, sections, chunk_size: int):
    for prefix, start, length in sections:
        if prefix:
            yield prefix
        if length <= 0:
            continue

        reader.seek(start)
        remaining = length
        while remaining > 0:
            chunk = reader.read(min(chunk_size, remaining))
            if not chunk:
                raise OSError(f"unexpected end of content: {remaining} of {length} bytes missing")
            remaining -= len(chunk)
            yield chunk


def _error_response(status: int, message: str, headers: Headers) -> Response:
    headers.remove("Content-Length")
    headers["Content-Type"] = "text/plain; charset=utf-8"
    return Response(message + "\n", status=status, headers=headers)
