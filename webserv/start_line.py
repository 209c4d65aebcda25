"""Parse the request line: method, target, query and protocol version."""

from __future__ import annotations

from itertools import islice

from webserv.request import Request

CR = "\r"
LF = "\n"
CRLF = "\r\n"

_HEX_DIGITS = "0123456789ABCDEF"


def _split_fields(text: str, separator: str) -> list[str]:
    """Split like repeated line reads: no empty field after a final separator."""
    fields = text.split(separator)
    if fields[-1] == "":
        fields.pop()
    return fields


def _hex_to_char(hex_code: str, request: Request) -> str:
    code = hex_code.upper()
    if (
        len(code) != 2
        or code == "00"
        or code[0] not in _HEX_DIGITS
        or code[1] not in _HEX_DIGITS
    ):
        request.mark_bad(400)
    return chr(int(code, 16))


def decode_target(uri: str, request: Request) -> str:
    """Percent-decode ``uri``, store it as the request target and return it."""
    decoded: list[str] = []
    chars = iter(uri)
    for char in chars:
        if char == "%":
            decoded.append(_hex_to_char("".join(islice(chars, 2)), request))
        else:
            decoded.append(char)
    request.target = "".join(decoded)
    return request.target


def _check_method(method: str, request: Request) -> None:
    if not all("A" <= char <= "Z" for char in method):
        request.mark_bad(400)
    request.method = method


def _check_uri(uri: str, request: Request) -> None:
    if not uri.startswith("/"):
        request.mark_bad(400)
    uri = uri.partition("#")[0]
    path, has_query, query = uri.partition("?")
    decode_target(path, request)
    if has_query:
        request.query = query


def _check_version(version: str, request: Request) -> None:
    if (
        not version.startswith("HTTP/")
        or len(version) <= 5
        or not "0" <= version[5] <= "9"
    ):
        request.mark_bad(400)
    if version not in ("HTTP/1.1", "HTTP/1.0"):
        request.mark_bad(505)
    request.set_version(version)


_FIELD_CHECKS = (_check_method, _check_uri, _check_version)


def parse_start_line(request: Request, start_line: str) -> None:
    """Parse a request line (without its CRLF) into ``request``."""
    fields = _split_fields(start_line, " ")
    for position, value in enumerate(fields):
        if position >= len(_FIELD_CHECKS):
            request.mark_bad(400)
        _FIELD_CHECKS[position](value, request)
    if len(fields) != len(_FIELD_CHECKS):
        request.mark_bad(400)
    request.start_line_parsed = True