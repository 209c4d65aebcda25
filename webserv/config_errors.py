"""Errors raised while reading a configuration file."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from webserv.directives import (
    ALLOWED_METHODS_DIR,
    AUTO_INDX_DIR,
    CGI_EXCT_DIR,
    CGI_RD_TMOUT_DIR,
    ERR_PAGE_DIR,
    LISTEN_DIR,
    MAX_BODY_DIR,
    REDIRECTION_DIR,
)

_PREFIX = "webserv : "


@dataclass(frozen=True)
class Token:
    """A configuration token and the line it ends on.

    ``is_sep`` marks the separators ``;``, ``{`` and ``}``.
    """

    token: str
    line_num: int = 0
    is_sep: bool = False


class ConfigParseError(Enum):
    """The kinds of structural error a configuration file can contain."""

    EMPTY = auto()
    UNEXPECTED = auto()
    NOT_ALLOWED = auto()
    UNKNOWN = auto()
    UNCLOSED_CTX = auto()
    DUPLICATION = auto()
    UNTERMINATED = auto()
    WRONG_ARGS_NUM = auto()
    END_OF_FILE = auto()
    NO_OPENING = auto()


class ConfigError(ValueError):
    """A configuration file could not be read or is invalid."""


_PARSING_MESSAGES = {
    ConfigParseError.EMPTY: "Configuration file is empty. Please provide a valid configuration.",
    ConfigParseError.UNEXPECTED: 'unexpected "{token}" in {where}',
    ConfigParseError.UNTERMINATED: 'directive "{token}" is not terminated by ";" in {where}',
    ConfigParseError.WRONG_ARGS_NUM: 'invalid number of arguments in "{token}" directive in {where}',
    ConfigParseError.NOT_ALLOWED: '"{token}" directive is not allowed here in {where}',
    ConfigParseError.UNKNOWN: 'unknown directive "{token}"in {where}',
    ConfigParseError.NO_OPENING: 'missing opening "{{" in {where}',
    ConfigParseError.DUPLICATION: '"{token}" directive is duplicate in {where}',
    ConfigParseError.UNCLOSED_CTX: 'unexpected end of file, expecting "}}" in {where}',
    ConfigParseError.END_OF_FILE: 'unexpected end of file, expecting ";" or "}}" in {where}',
}

_WRONG_VALUE_MESSAGES = {
    AUTO_INDX_DIR: (
        'invalid value "{token}" in "{directive}" directive,  '
        'it must be "on" or "off" in {where}'
    ),
    ERR_PAGE_DIR: 'value "{token}" must be a number between 300 and 599 in {where}',
    CGI_EXCT_DIR: (
        'invalid value "{token}" in "{directive}" directive, it must be ".php" in {where}'
    ),
    LISTEN_DIR: 'value "{token}" must be a number between 1024 and 49151 in {where}',
    ALLOWED_METHODS_DIR: 'invalid method "{token}" in {where}',
    REDIRECTION_DIR: 'invalid return code "{token}" in {where}',
    MAX_BODY_DIR: 'value "{token}" must be a number between 0 and 12500000000 in {where}',
    CGI_RD_TMOUT_DIR: (
        'value "{token}" must be a number between 3 and 9223372036854775807 in {where}'
    ),
}


def _where(token: Token, file_name: str) -> str:
    return f"{file_name}:{token.line_num}"


def parsing_error(
    kind: ConfigParseError, token: Token | None, file_name: str
) -> ConfigError:
    """Build the error for a structural problem found at ``token``."""
    token = token if token is not None else Token("")
    message = _PARSING_MESSAGES[kind].format(
        token=token.token, where=_where(token, file_name)
    )
    return ConfigError(_PREFIX + message)


def wrong_value_error(directive: str, token: Token, file_name: str) -> ConfigError:
    """Build the error for a value that a directive does not accept."""
    template = _WRONG_VALUE_MESSAGES.get(directive)
    if template is None:
        return ConfigError("")
    message = template.format(
        token=token.token, directive=directive, where=_where(token, file_name)
    )
    return ConfigError(_PREFIX + message)