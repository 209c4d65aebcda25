"""State of an HTTP request while it is being parsed.

Message text is handled as ``str`` decoded with latin-1, so every byte of
the wire format maps to exactly one character.
"""

from __future__ import annotations

import contextlib
import logging
import os
from dataclasses import dataclass, field
from typing import IO, NoReturn, Optional

from webserv.contexts import DEFAULT_MAX_BODY_SIZE

logger = logging.getLogger(__name__)

MAX_HEAD_LENGTH = 8000
"""Longest start line plus headers kept while waiting for the rest."""


class BadRequest(Exception):
    """The request is invalid; ``status_code`` is the response to send."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Bad request! (status {status_code})")
        self.status_code = status_code


@dataclass
class Part:
    """One part of a multipart body that is being uploaded."""

    file_name: str = ""
    file: Optional[IO] = None
    header_parsed: bool = False
    is_complete: bool = False
    is_new: bool = True
    file_opened: bool = False
    unparsed_bytes: str = ""


@dataclass
class Request:
    """Everything learnt about a request so far, plus its parsing progress."""

    method: str = ""
    version: str = ""
    target: str = ""
    query: str = ""
    body: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    content_type: str = "text/plain"
    content_length: int = 0
    boundary: str = ""
    upload_dir: str = ""
    max_body_size: int = DEFAULT_MAX_BODY_SIZE
    cgi_content_file: Optional[IO] = None

    start_line_parsed: bool = False
    headers_parsed: bool = False
    body_parsed: bool = False
    content_length_is_set: bool = False
    is_ready: bool = False
    is_chunked: bool = False
    is_persistent: bool = True
    is_multipart: bool = False
    host_is_set: bool = False
    is_cgi_request: bool = False

    is_bad: bool = False
    bad_status_code: int = 200
    parsing_error_code: int = 0

    unparsed_msg: str = ""
    total_body_length: int = 0
    first_chunk_fixed: bool = False
    size_left: int = 0

    parts: list[Part] = field(default_factory=list)
    first_part_reached: bool = False
    last_part_reached: bool = False

    def mark_bad(self, code: int) -> NoReturn:
        """Flag the request as invalid with ``code`` and raise :class:`BadRequest`."""
        logger.debug("BAD REQUEST: code=%d", code)
        self.bad_status_code = code
        self.is_bad = True
        raise BadRequest(code)

    def set_version(self, version: str) -> None:
        """Record the protocol version; HTTP/1.0 connections are not kept alive."""
        if version == "HTTP/1.0":
            self.is_persistent = False
        self.version = version

    def set_content_length(self, length: int) -> None:
        """Record the declared body length."""
        self.content_length = length
        self.content_length_is_set = True

    def set_header(self, name: str, value: str) -> None:
        """Store a header, replacing any earlier value of the same name."""
        if name == "TRANSFER-ENCODING" and value == "chunked":
            self.is_chunked = True
        self.headers[name] = value

    def append_body(self, data: str) -> None:
        """Append data to the body read so far."""
        self.body += data

    def store_unparsed(self, data: str) -> None:
        """Keep data that cannot be parsed yet; reject an overlong start line or head."""
        self.unparsed_msg += data
        if len(self.unparsed_msg) > MAX_HEAD_LENGTH:
            if not self.start_line_parsed:
                self.mark_bad(414)
            elif not self.headers_parsed:
                self.mark_bad(431)

    def take_unparsed(self) -> str:
        """Return the kept data and forget it."""
        data, self.unparsed_msg = self.unparsed_msg, ""
        return data

    def build_boundary(self, kind: int) -> str:
        """Build a delimiter line: 1 opening, 2 closing, 3 delimiter after CRLF."""
        line = "--" + self.boundary
        if kind == 2:
            line += "--"
        if kind in (2, 3):
            line = "\r\n" + line
        return line + "\r\n"

    def latest_part(self) -> Part:
        """Return the part being read, starting a new one after a complete part."""
        if not self.parts or self.parts[-1].is_complete:
            self.parts.append(Part())
        return self.parts[-1]

    def drop_last_part(self) -> None:
        """Forget the most recent part."""
        part = self.parts.pop()
        if part.file is not None:
            part.file.close()

    def close(self) -> None:
        """Close open files; on a bad request, delete the files uploaded so far."""
        for part in self.parts:
            if part.file is not None:
                part.file.close()
                part.file = None
            if self.bad_status_code != 200 and part.file_name and part.file_opened:
                with contextlib.suppress(OSError):
                    os.remove(f"{self.upload_dir}/{part.file_name}")
        self.parts.clear()
        if self.cgi_content_file is not None:
            self.cgi_content_file.close()
            self.cgi_content_file = None

    def __enter__(self) -> Request:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()