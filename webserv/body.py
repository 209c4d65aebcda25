"""Parse a request body: length or chunked framing, multipart uploads and CGI input."""

from __future__ import annotations

import io
import os
from itertools import islice
from typing import IO

from webserv.request import Part, Request
from webserv.start_line import CRLF

_HEX_DIGITS = "0123456789ABCDEF"
_C_WHITESPACE = " \t\n\v\f\r"
_ALLOWED_WS = " \t\v\f\b"
_FORBIDDEN_WS = "\n\r"
_MAX_ASCII = 127
_MAX_CHUNK_DIGITS = 16
_MAX_CHUNK_HEADER = 20  # CRLF, sixteen hex digits, CRLF
_FILENAME_PREFIX = "filename="
_NAME_PREFIX = "name="


def _write(stream: IO, data: str) -> None:
    """Write message text to a text or binary stream."""
    if isinstance(stream, io.TextIOBase):
        stream.write(data)
    else:
        stream.write(data.encode("latin-1"))


def _split_fields(text: str, separator: str) -> list[str]:
    fields = text.split(separator)
    if fields[-1] == "":
        fields.pop()
    return fields


def _trim_leading(request: Request, value: str) -> str:
    """Drop allowed whitespace from the front; a CR or LF there is an error."""
    kept: list[str] = []
    for position, char in enumerate(value):
        if char not in _C_WHITESPACE:
            return "".join(kept) + value[position:]
        if char in _ALLOWED_WS:
            continue
        if char in _FORBIDDEN_WS:
            request.mark_bad(400)
        kept.append(char)
    return "".join(kept)


def _hex_to_char(hex_code: str, request: Request) -> str:
    code = hex_code.upper()
    if (
        len(code) != 2
        or code == "00"
        or code[0] not in _HEX_DIGITS
        or code[1] not in _HEX_DIGITS
    ):
        request.mark_bad(400)
    value = int(code, 16)
    if value > _MAX_ASCII:
        request.mark_bad(400)
    return chr(value)


def _is_name_char(char: str) -> bool:
    return "a" <= char <= "z" or "A" <= char <= "Z" or char in "_-"


def _decode_file_name(request: Request, value: str) -> str:
    """Decode a quoted file name; slashes become underscores."""
    decoded: list[str] = []
    chars = iter(value[1:-1])
    for char in chars:
        if char == "/":
            decoded.append("_")
        elif char == "%":
            decoded.append(_hex_to_char("".join(islice(chars, 2)), request))
        else:
            decoded.append(char)
    return "".join(decoded)


def _disposition_file_name(request: Request, value: str, file_name: str) -> str:
    """Return the file name a form-data disposition carries, validating its parameters."""
    name_found = False
    for position, param in enumerate(_split_fields(value, ";")):
        param = _trim_leading(request, param)
        if position == 0 and param != "form-data":
            return file_name
        if param.startswith(_NAME_PREFIX):
            if len(param) >= 7 and param[5] == '"' and param[-1] == '"':
                name_found = True
            else:
                request.mark_bad(400)
        if param.startswith(_FILENAME_PREFIX):
            if len(param) >= 11 and param[9] == '"' and param[-1] == '"':
                file_name = _decode_file_name(request, param[len(_FILENAME_PREFIX):])
            else:
                request.mark_bad(400)
    if file_name and not name_found:
        request.mark_bad(400)
    return file_name


def _check_part_header(request: Request, header: str, part: Part) -> None:
    name, has_colon, value = header.partition(":")
    if not has_colon:
        request.mark_bad(400)
    if not name or not all(_is_name_char(char) for char in name):
        request.mark_bad(400)
    name = name.upper()

    if name == "CONTENT-DISPOSITION" and _FILENAME_PREFIX in value:
        part.file_name = _disposition_file_name(request, value, part.file_name)

    if part.file_name and not part.file_opened:
        try:
            part.file = open(f"{request.upload_dir}/{part.file_name}", "wb")
        except OSError:
            request.mark_bad(500)
        part.file_opened = True


def _extract_part_headers(request: Request, part: Part, content: str) -> str:
    while True:
        header, found, rest = content.partition(CRLF)
        if not found:
            return content
        if not header:
            part.header_parsed = True
            return rest
        if request.boundary in header:
            request.mark_bad(400)
        _check_part_header(request, header, part)
        content = rest


def _is_possible_candidate(boundary: str, content: str) -> bool:
    final_boundary = boundary[:-2] + "--" + boundary[-2:]
    return boundary.startswith(content) or final_boundary.startswith(content)


def _finish_part(part: Part, data: str) -> None:
    part.is_complete = True
    if part.file_name and part.file is not None:
        _write(part.file, data)
        part.file.close()


def _extract_part_content(request: Request, part: Part, content: str) -> str:
    valid_length = 0
    valid_data = ""
    closing = request.build_boundary(2)
    delimiter = request.build_boundary(3)

    while True:
        crlf_pos = content.find(CRLF)
        if crlf_pos == -1:
            break
        valid_data += content[:crlf_pos]
        if valid_data.find(request.boundary, valid_length) != -1:
            request.mark_bad(400)
        valid_length += len(valid_data)
        content = content[crlf_pos:]

        if content.startswith(closing):
            _finish_part(part, valid_data)
            request.last_part_reached = True
            request.body_parsed = True
            return ""
        if content.startswith(delimiter):
            _finish_part(part, valid_data)
            return content[2:]
        if _is_possible_candidate(delimiter, content):
            part.unparsed_bytes = content
            if part.file_name and part.file is not None:
                _write(part.file, valid_data)
            return ""
        valid_data += CRLF
        valid_length += 2
        content = content[2:]

    if request.boundary in content:
        request.mark_bad(400)
    valid_data += content
    if part.file_name and part.file is not None:
        _write(part.file, valid_data)
    return ""


def _extract_part(request: Request, content: str) -> str:
    part = request.latest_part()
    opening = request.build_boundary(1)

    content = part.unparsed_bytes + content
    part.unparsed_bytes = ""

    if part.is_new:
        if not content.startswith(opening):
            part.unparsed_bytes = content
            return ""
        content = content[len(opening):]
        part.is_new = False

    if not part.header_parsed:
        content = _extract_part_headers(request, part, content)
    if not part.header_parsed:
        part.unparsed_bytes = content
        return ""

    content = _extract_part_content(request, part, content)
    if part.is_complete and not part.file_name:
        request.drop_last_part()
    return content


def trim_content_to_boundary_segment(boundary: str, content: str) -> str:
    """Keep only a trailing piece of ``content`` that could start ``boundary``.

    Returns "" when no such piece exists.
    """
    while content:
        cr_pos = content.find("\r")
        if cr_pos == -1:
            return ""
        content = content[cr_pos:]
        matched = len(os.path.commonprefix((content, boundary)))
        if matched == len(content):
            return content
        # Always advance, even when the boundary does not start with CR.
        content = content[max(matched, 1):]
    return content


def _remove_ignored_area(boundary: str, content: str) -> str:
    """Drop the preamble that comes before the first boundary."""
    dashed = f"--{boundary}{CRLF}"
    if content.startswith(dashed):
        return content
    dashed = CRLF + dashed
    position = content.find(dashed)
    if position != -1:
        return content[position + 2:]
    if len(content) >= len(dashed):
        content = content[len(content) - len(dashed):]
    return trim_content_to_boundary_segment(dashed, content)


def _process_chunk(request: Request, content: str) -> None:
    if request.is_multipart and not request.is_cgi_request and request.upload_dir:
        if not request.first_part_reached:
            content = _remove_ignored_area(request.boundary, content)
            if not content:
                return
            if len(content) < len(request.boundary) + 4:
                request.total_body_length -= len(content)
                request.store_unparsed(content)
                return
            request.first_part_reached = True
        while content and not request.last_part_reached:
            content = _extract_part(request, content)
    elif request.is_cgi_request and request.cgi_content_file is not None:
        _write(request.cgi_content_file, content)


def hex_to_size(request: Request, chunk_size: str) -> int:
    """Read an upper-case hexadecimal chunk size; malformed sizes are a bad request."""
    if not chunk_size:
        return 0
    if chunk_size[0] == "0" and len(chunk_size) != 1:
        request.mark_bad(400)
    if len(chunk_size) > _MAX_CHUNK_DIGITS:
        request.mark_bad(400)
    if any(char not in _HEX_DIGITS for char in chunk_size):
        request.mark_bad(400)
    return int(chunk_size, 16)


def _extract_chunk_length(request: Request, msg: str) -> tuple[str, str]:
    crlf_1 = msg.find(CRLF)
    if crlf_1 != 0 and (crlf_1 != -1 or len(msg) >= 2):
        request.mark_bad(400)

    crlf_2 = msg.find(CRLF, 2)
    if crlf_2 == -1:
        if len(msg) >= _MAX_CHUNK_HEADER:
            request.mark_bad(400)
    elif crlf_2 == 2:
        request.mark_bad(400)

    if crlf_1 == -1 or crlf_2 == -1:
        request.store_unparsed(msg)
        return "", ""

    length = msg[2:crlf_2]
    return length.upper(), msg[crlf_2 + 2:]


def _find_chunk_length(request: Request, msg: str) -> tuple[int, str]:
    length, msg = _extract_chunk_length(request, msg)
    if not length:
        return 0, msg
    chunk_length = hex_to_size(request, length)
    request.total_body_length += chunk_length
    if not chunk_length:
        request.body_parsed = True
    return chunk_length, msg


def find_chunk_content(request: Request, msg: str) -> tuple[str, str]:
    """Take the next piece of body data from ``msg``.

    Returns the data and what is left of ``msg``. An unfinished chunk is
    remembered on the request so the next call continues it.
    """
    chunk_length = request.size_left
    if not chunk_length:
        if not request.is_chunked:
            if request.total_body_length == request.content_length:
                request.body_parsed = True
                return "", msg
            chunk_length = request.content_length
        else:
            if not request.first_chunk_fixed:
                msg = CRLF + msg
                request.first_chunk_fixed = True
            chunk_length, msg = _find_chunk_length(request, msg)

    content, msg = msg[:chunk_length], msg[chunk_length:]
    request.size_left = chunk_length - len(content)

    if not request.is_chunked:
        request.total_body_length += len(content)
    if request.total_body_length > request.max_body_size:
        request.mark_bad(413)
    return content, msg


def parse_body(request: Request, msg: str) -> str:
    """Consume body data from ``msg`` and return what follows the body.

    Multipart uploads are written to the upload directory, CGI input to the
    request's CGI file. Once the whole body is read the request is ready.
    """
    content, msg = find_chunk_content(request, msg)
    while content and not request.body_parsed:
        _process_chunk(request, request.take_unparsed() + content)
        content, msg = find_chunk_content(request, msg)

    if request.body_parsed:
        if request.cgi_content_file is not None:
            request.cgi_content_file.close()
            request.cgi_content_file = None
        request.is_ready = True
    return msg