"""Read the values that follow a directive in the token stream."""

from __future__ import annotations

from collections import deque
from typing import Callable, Iterable, Optional

from webserv.config_errors import (
    ConfigError,
    ConfigParseError,
    Token,
    parsing_error,
    wrong_value_error,
)
from webserv.contexts import ErrorPage, Redirection
from webserv.directives import (
    ALLOWED_METHODS_DIR,
    AUTO_INDX_DIR,
    CGI_RD_TMOUT_DIR,
    ERR_PAGE_DIR,
    LISTEN_DIR,
    MAX_BODY_DIR,
    REDIRECTION_DIR,
)
from webserv.utils import is_all_digits, parse_int, parse_long

Validator = Optional[Callable[[Token], None]]

_METHODS = frozenset({"GET", "POST", "DELETE", "HEAD"})


class ValueExtractor:
    """Consumes a directive and its arguments from a shared token queue.

    Every extractor expects the directive itself at the front of the queue
    and leaves the queue positioned just after the terminating ``;``.
    """

    def __init__(self, tokens: Iterable[Token], file_name: str = "") -> None:
        self.tokens: deque[Token] = tokens if isinstance(tokens, deque) else deque(tokens)
        self.file_name = file_name

    def _parse_error(self, kind: ConfigParseError, token: Token) -> ConfigError:
        return parsing_error(kind, token, self.file_name)

    def _wrong_value(self, directive: str, token: Token) -> ConfigError:
        return wrong_value_error(directive, token, self.file_name)

    def front_token(self, directive: Token) -> Token:
        """Return the front token, or raise when the directive runs off the end."""
        if not self.tokens:
            raise self._parse_error(ConfigParseError.UNTERMINATED, directive)
        return self.tokens[0]

    def _start(self) -> tuple[Token, Token]:
        """Pop the directive and return it with its first, non-separator argument."""
        directive = self.tokens.popleft()
        token = self.front_token(directive)
        if token.is_sep:
            raise self._parse_error(ConfigParseError.UNEXPECTED, token)
        return directive, token

    def _advance(self, directive: Token) -> Token:
        self.tokens.popleft()
        return self.front_token(directive)

    def _finish(self, token: Token, directive: Token) -> None:
        self.validate_directive_ending(token, directive)
        self.tokens.popleft()

    def single_string(self, validator: Validator = None) -> str:
        """Read a directive that takes exactly one value."""
        directive, token = self._start()
        if validator is not None:
            validator(token)
        value = token.token
        self._finish(self._advance(directive), directive)
        return value

    def multi_string(self, validator: Validator = None) -> list[str]:
        """Read a directive that takes one or more values."""
        directive, token = self._start()
        values: list[str] = []
        while not token.is_sep:
            if validator is not None:
                validator(token)
            values.append(token.token)
            token = self._advance(directive)
        self._finish(token, directive)
        return values

    def port_numbers(self) -> list[int]:
        """Read the ports of a ``listen`` directive."""
        directive, token = self._start()
        ports: list[int] = []
        while not token.is_sep:
            self.validate_port_number(token)
            ports.append(parse_int(token.token))
            token = self._advance(directive)
        self._finish(token, directive)
        return ports

    def max_body_size(self) -> int:
        """Read the limit of a ``client_max_body_size`` directive."""
        directive, token = self._start()
        self.validate_max_body_size(token)
        size = parse_long(token.token)
        self._finish(self._advance(directive), directive)
        return size

    def _second_argument(self, directive: Token) -> Token:
        token = self._advance(directive)
        if token.is_sep:
            if token.token == ";":
                raise self._parse_error(ConfigParseError.WRONG_ARGS_NUM, directive)
            raise self._parse_error(ConfigParseError.UNEXPECTED, token)
        return token

    def error_page(self) -> ErrorPage:
        """Read an ``error_page`` directive: a status code and a path."""
        directive, token = self._start()
        self.validate_http_code(token)
        code = parse_int(token.token)
        path = self._second_argument(directive).token
        self._finish(self._advance(directive), directive)
        return ErrorPage(code, path)

    def cgi_info(self) -> tuple[str, str]:
        """Read a ``cgi_extention`` directive: an extension and an interpreter."""
        directive, token = self._start()
        extension = token.token
        exec_path = self._second_argument(directive).token
        self._finish(self._advance(directive), directive)
        return extension, exec_path

    def location(self) -> str:
        """Read the path of a ``location`` directive, leaving its ``{`` queued."""
        _, token = self._start()
        self.tokens.popleft()
        return token.token

    def redirection(self) -> Redirection:
        """Read a ``return`` directive: a status code and an optional target."""
        directive, token = self._start()
        self.validate_redirection_code(token)
        status_code = parse_int(token.token)
        token = self._advance(directive)
        target = ""
        if token.is_sep:
            if token.token != ";":
                raise self._parse_error(ConfigParseError.UNTERMINATED, directive)
        else:
            target = token.token
            self.tokens.popleft()
        self._finish(self.front_token(directive), directive)
        return Redirection(status_code, target)

    def time_value(self) -> int:
        """Read the seconds of a ``cgi_read_timeout`` directive."""
        directive, token = self._start()
        self.validate_time_value(token)
        seconds = parse_long(token.token)
        self._finish(self._advance(directive), directive)
        return seconds

    def validate_directive_ending(self, token: Token, directive: Token) -> None:
        """Require ``token`` to be the ``;`` that ends ``directive``."""
        if self.tokens and token.is_sep and token.token == ";":
            return
        if not self.tokens or token.is_sep:
            raise self._parse_error(ConfigParseError.UNTERMINATED, directive)
        raise self._parse_error(ConfigParseError.WRONG_ARGS_NUM, directive)

    def validate_port_number(self, token: Token) -> None:
        """Accept ports from 1024 to 49151."""
        text = token.token
        if (
            not is_all_digits(text)
            or len(text) not in (4, 5)
            or (len(text) == 4 and text < "1024")
            or (len(text) == 5 and text > "49151")
        ):
            raise self._wrong_value(LISTEN_DIR, token)

    def validate_max_body_size(self, token: Token) -> None:
        """Accept sizes from 0 to 12500000000."""
        text = token.token
        if (
            not is_all_digits(text)
            or len(text) > 11
            or (len(text) == 11 and text > "12500000000")
        ):
            raise self._wrong_value(MAX_BODY_DIR, token)

    def validate_auto_index(self, token: Token) -> None:
        """Accept ``on`` and ``off``."""
        if token.token not in ("on", "off"):
            raise self._wrong_value(AUTO_INDX_DIR, token)

    def validate_http_code(self, token: Token) -> None:
        """Accept three-digit codes from 300 to 599."""
        text = token.token
        if not is_all_digits(text) or len(text) != 3 or text < "300" or text > "599":
            raise self._wrong_value(ERR_PAGE_DIR, token)

    def validate_method(self, token: Token) -> None:
        """Accept GET, POST, DELETE and HEAD."""
        if token.token not in _METHODS:
            raise self._wrong_value(ALLOWED_METHODS_DIR, token)

    def validate_redirection_code(self, token: Token) -> None:
        """Accept numbers of at most three digits."""
        if not is_all_digits(token.token) or len(token.token) > 3:
            raise self._wrong_value(REDIRECTION_DIR, token)

    def validate_time_value(self, token: Token) -> None:
        """Accept numbers from 3 up to the largest signed 64-bit value."""
        text = token.token
        if (
            not is_all_digits(text)
            or len(text) > 19
            or (len(text) == 19 and text > "9223372036854775807")
            or (len(text) == 1 and text < "3")
        ):
            raise self._wrong_value(CGI_RD_TMOUT_DIR, token)