"""Parse and validate the header section of a request."""

from __future__ import annotations

from webserv.request import Request
from webserv.start_line import CRLF

_C_WHITESPACE = " \t\n\v\f\r"
_LONG_MAX = 2**63 - 1

_VALUE_ALLOWED_WS = " \t\v\f\b"
_VALUE_FORBIDDEN_WS = "\n\r"

_MULTIPART_TYPES = frozenset(
    {
        "multipart/mixed",
        "multipart/related",
        "multipart/parallel",
        "multipart/alternative",
        "multipart/form-data",
    }
)

_BOUNDARY_SEPARATORS = ":;,= "
_BOUNDARY_CHARS = "'()+_-./?"
_MAX_BOUNDARY_LENGTH = 70
_BOUNDARY_PREFIX = "boundary="


def _split_fields(text: str, separator: str) -> list[str]:
    fields = text.split(separator)
    if fields[-1] == "":
        fields.pop()
    return fields


def _trim_leading(request: Request, value: str, allowed: str, forbidden: str) -> str:
    """Drop allowed whitespace from the front; forbidden whitespace there is an error."""
    kept: list[str] = []
    for position, char in enumerate(value):
        if char not in _C_WHITESPACE:
            return "".join(kept) + value[position:]
        if char in allowed:
            continue
        if char in forbidden:
            request.mark_bad(400)
        kept.append(char)
    return "".join(kept)


def _validate_host(request: Request, value: str) -> None:
    if request.host_is_set:
        request.mark_bad(400)
    value = _trim_leading(request, value, " ", "\r\n\f\t\b\v")
    value = value.partition(":")[0]
    if not value or any(char in _C_WHITESPACE for char in value):
        request.mark_bad(400)
    request.set_header("HOST", value)
    request.host_is_set = True


def _trimmed_items(request: Request, value: str, separator: str) -> list[str]:
    return [
        _trim_leading(request, item, _VALUE_ALLOWED_WS, _VALUE_FORBIDDEN_WS)
        for item in _split_fields(value, separator)
    ]


def _validate_transfer_encoding(request: Request, value: str) -> None:
    for item in _split_fields(value, ","):
        item = _trim_leading(request, item, _VALUE_ALLOWED_WS, _VALUE_FORBIDDEN_WS)
        if item == "chunked":
            request.is_chunked = True
            return


def _validate_connection(request: Request, value: str) -> None:
    for item in _split_fields(value, ","):
        item = _trim_leading(request, item, _VALUE_ALLOWED_WS, _VALUE_FORBIDDEN_WS)
        if item == "close":
            request.is_persistent = False
            return
        if item == "keep-alive":
            request.is_persistent = True
            return


def _validate_content_length(request: Request, value: str) -> None:
    if not all("0" <= char <= "9" for char in value):
        request.mark_bad(400)
    if not value or int(value) > _LONG_MAX:
        request.mark_bad(400)
    request.set_content_length(int(value))


def extract_boundary(parameter: str) -> str:
    """Return the boundary of a ``boundary=`` parameter, or "" when it is invalid."""
    boundary = parameter[len(_BOUNDARY_PREFIX):]
    quoted = len(boundary) >= 2 and boundary[0] == '"' and boundary[-1] == '"'
    if quoted:
        boundary = boundary[1:-1]
    if not boundary or len(boundary) > _MAX_BOUNDARY_LENGTH:
        return ""
    for char in boundary:
        is_separator = char in _BOUNDARY_SEPARATORS
        is_plain = (char.isascii() and char.isalnum()) or char in _BOUNDARY_CHARS
        if (not is_plain and not is_separator) or (is_separator and not quoted):
            return ""
    return boundary


def _validate_content_type(request: Request, value: str) -> None:
    for position, item in enumerate(_split_fields(value, ";")):
        item = _trim_leading(request, item, _VALUE_ALLOWED_WS, _VALUE_FORBIDDEN_WS)
        if position == 0:
            if item not in _MULTIPART_TYPES:
                return
        elif item.startswith(_BOUNDARY_PREFIX):
            boundary = extract_boundary(item)
            if not boundary:
                request.mark_bad(400)
            request.is_multipart = True
            request.boundary = boundary
            return
    # A multipart type without its boundary parameter.
    request.mark_bad(400)


def _validate_header_value(request: Request, name: str, value: str) -> None:
    if name == "HOST":
        _validate_host(request, value)
        return

    value = _trim_leading(request, value, _VALUE_ALLOWED_WS, _VALUE_FORBIDDEN_WS)

    if name == "CONNECTION":
        _validate_connection(request, value)

    if request.method == "POST":
        if name == "CONTENT_LENGTH":
            if request.is_chunked:
                request.mark_bad(400)
            _validate_content_length(request, value)
        elif name == "TRANSFER_ENCODING":
            if request.content_length_is_set:
                request.mark_bad(400)
            if not request.is_chunked:
                _validate_transfer_encoding(request, value)
        elif name == "CONTENT_TYPE":
            _validate_content_type(request, value)

    request.set_header(name, value)


def _is_name_char(char: str) -> bool:
    return "a" <= char <= "z" or "A" <= char <= "Z" or char in "_-"


def _process_header(request: Request, header: str) -> None:
    name, has_colon, value = header.partition(":")
    if not has_colon:
        request.mark_bad(400)
    if not name or not all(_is_name_char(char) for char in name):
        request.mark_bad(400)
    name = name.replace("-", "_").upper()
    _validate_header_value(request, name, value)


def parse_headers(request: Request, msg: str) -> str:
    """Parse every complete header line in ``msg`` and return what is left.

    Reaching the empty line that ends the headers marks them parsed; the
    text after it is returned for the body.
    """
    while True:
        line, found, rest = msg.partition(CRLF)
        if not found:
            return msg
        msg = rest
        if not line:
            request.headers_parsed = True
            return msg
        _process_header(request, line)