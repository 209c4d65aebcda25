"""Build the configuration contexts from a token stream."""

from __future__ import annotations

from collections import deque
from typing import Iterable

from webserv.config_errors import ConfigError, ConfigParseError, Token, parsing_error
from webserv.contexts import HttpContext, LocationContext, ServerContext
from webserv.directives import (
    ALIAS_DIR,
    ALLOWED_METHODS_DIR,
    AUTO_INDX_DIR,
    CGI_EXCT_DIR,
    CGI_RD_TMOUT_DIR,
    ERR_PAGE_DIR,
    HOST_DIR,
    INDEX_DIR,
    LISTEN_DIR,
    LOCATION_DIR,
    MAX_BODY_DIR,
    REDIRECTION_DIR,
    ROOT_DIR,
    SERVER_DIR,
    SERVER_NAMES_DIR,
    UPLOAD_DIR,
    is_http_ctx_dir,
    is_location_ctx_dir,
    is_server_ctx_dir,
    is_valid_directive,
)
from webserv.extractor import ValueExtractor
from webserv.tokenizer import tokenize_file, tokenize_text

_HTTP_ONCE = {AUTO_INDX_DIR: "auto_ind_is_set", MAX_BODY_DIR: "max_body_is_set"}

_SERVER_ONCE = {
    AUTO_INDX_DIR: "auto_ind_is_set",
    HOST_DIR: "host_is_set",
    ROOT_DIR: "root_is_set",
    LISTEN_DIR: "port_is_set",
    INDEX_DIR: "index_is_set",
    UPLOAD_DIR: "upl_dir_is_set",
    ALLOWED_METHODS_DIR: "methods_is_set",
    SERVER_NAMES_DIR: "srv_names_is_set",
}

_LOCATION_ONCE = {
    AUTO_INDX_DIR: "auto_ind_is_set",
    ROOT_DIR: "root_is_set",
    INDEX_DIR: "index_is_set",
    UPLOAD_DIR: "upl_dir_is_set",
    ALLOWED_METHODS_DIR: "methods_is_set",
    REDIRECTION_DIR: "redirect_is_set",
}


def _is_duplicate(directive: str, context: object, flags: dict[str, str]) -> bool:
    flag = flags.get(directive)
    return flag is not None and getattr(context, flag)


class ConfigParser:
    """Turns the tokens of a configuration file into an :class:`HttpContext`."""

    def __init__(self, tokens: Iterable[Token], file_name: str = "") -> None:
        self.tokens: deque[Token] = deque(tokens)
        self.file_name = file_name
        self.http_config = HttpContext()
        self._extractor = ValueExtractor(self.tokens, file_name)
        last_line = self.tokens[-1].line_num if self.tokens else 0
        self._end_token = Token("", last_line)
        self._server_dir_found = False
        self._location_dir_found = False

    def _error(self, kind: ConfigParseError, token: Token) -> ConfigError:
        return parsing_error(kind, token, self.file_name)

    def _front(self) -> Token:
        return self.tokens[0] if self.tokens else self._end_token

    def parse(self) -> HttpContext:
        """Parse every token and return the validated http context."""
        if not self.tokens:
            raise self._error(ConfigParseError.EMPTY, Token(""))
        first = self.tokens[0]
        if first.token != "http":
            self._raise_bad_token(first)
        self.tokens.popleft()
        self._store("http")
        self._validate_config()
        return self.http_config

    def _raise_bad_token(self, token: Token) -> None:
        if token.is_sep:
            raise self._error(ConfigParseError.UNEXPECTED, token)
        if is_valid_directive(token.token):
            raise self._error(ConfigParseError.NOT_ALLOWED, token)
        raise self._error(ConfigParseError.UNKNOWN, token)

    def _store(self, context: str) -> None:
        if not self.tokens or self.tokens[0].token != "{":
            raise self._error(ConfigParseError.NO_OPENING, self._front())
        self.tokens.popleft()

        while self.tokens:
            front = self.tokens[0]
            if front.is_sep and front.token == "}":
                break
            if context == "http":
                self._location_dir_found = False
                self._store_http_directive()
            elif context == "server":
                self._store_server_directive()
            else:
                self._store_location_directive()

        self._close(context)

    def _close(self, context: str) -> None:
        if not self.tokens:
            raise self._error(ConfigParseError.UNCLOSED_CTX, self._end_token)
        self.tokens.popleft()
        if context == "http" and self.tokens:
            raise self._error(ConfigParseError.UNEXPECTED, self.tokens[0])

    def _store_http_directive(self) -> None:
        token = self.tokens[0]
        directive = token.token
        if not is_http_ctx_dir(directive):
            self._raise_bad_token(token)

        if directive == SERVER_DIR:
            self._server_dir_found = True
            self.http_config.add_server()
            self.tokens.popleft()
            self._store("server")
            return

        if self._server_dir_found:
            raise self._error(ConfigParseError.UNEXPECTED, token)
        http = self.http_config
        if _is_duplicate(directive, http, _HTTP_ONCE):
            raise self._error(ConfigParseError.DUPLICATION, token)

        extractor = self._extractor
        if directive == AUTO_INDX_DIR:
            http.set_auto_index(extractor.single_string(extractor.validate_auto_index))
            http.auto_ind_is_set = True
        elif directive == CGI_EXCT_DIR:
            http.set_cgi_info(*extractor.cgi_info())
        elif directive == MAX_BODY_DIR:
            http.max_body_size = extractor.max_body_size()
            http.max_body_is_set = True
        elif directive == ERR_PAGE_DIR:
            http.set_error_page(extractor.error_page())
        elif directive == CGI_RD_TMOUT_DIR:
            http.cgi_read_timeout = extractor.time_value()
            http.cgi_read_timeout_is_set = True

    def _store_server_directive(self) -> None:
        token = self.tokens[0]
        directive = token.token
        if not is_server_ctx_dir(directive):
            self._raise_bad_token(token)

        extractor = self._extractor
        if directive == LOCATION_DIR:
            self._location_dir_found = True
            self.http_config.latest_server().add_location(extractor.location())
            self._store("location")
            return

        if self._location_dir_found:
            raise self._error(ConfigParseError.UNEXPECTED, token)
        server = self.http_config.latest_server()
        if _is_duplicate(directive, server, _SERVER_ONCE):
            raise self._error(ConfigParseError.DUPLICATION, token)

        if directive == AUTO_INDX_DIR:
            server.set_auto_index(extractor.single_string(extractor.validate_auto_index))
            server.auto_ind_is_set = True
        elif directive == ERR_PAGE_DIR:
            server.set_error_page(extractor.error_page())
        elif directive == LISTEN_DIR:
            server.ports = extractor.port_numbers()
            server.port_is_set = True
        elif directive == ROOT_DIR:
            server.root_directory = extractor.single_string()
            server.root_is_set = True
        elif directive == UPLOAD_DIR:
            server.upload_dir = extractor.single_string()
            server.upl_dir_is_set = True
        elif directive == INDEX_DIR:
            server.index = extractor.single_string()
            server.index_is_set = True
        elif directive == SERVER_NAMES_DIR:
            server.server_names = extractor.multi_string()
            server.srv_names_is_set = True
        elif directive == ALLOWED_METHODS_DIR:
            server.allowed_methods = extractor.multi_string(extractor.validate_method)
            server.methods_is_set = True
        elif directive == HOST_DIR:
            server.host = extractor.single_string()
            server.host_is_set = True
        elif directive == CGI_EXCT_DIR:
            server.set_cgi_info(*extractor.cgi_info())
        elif directive == CGI_RD_TMOUT_DIR:
            server.cgi_read_timeout = extractor.time_value()
            server.cgi_read_timeout_is_set = True

    def _store_location_directive(self) -> None:
        token = self.tokens[0]
        directive = token.token
        if not is_location_ctx_dir(directive):
            self._raise_bad_token(token)

        location: LocationContext = self.http_config.latest_server().latest_location()
        if _is_duplicate(directive, location, _LOCATION_ONCE):
            raise self._error(ConfigParseError.DUPLICATION, token)

        extractor = self._extractor
        if directive == AUTO_INDX_DIR:
            location.set_auto_index(extractor.single_string(extractor.validate_auto_index))
            location.auto_ind_is_set = True
        elif directive == ERR_PAGE_DIR:
            location.set_error_page(extractor.error_page())
        elif directive == ROOT_DIR:
            location.root_directory = extractor.single_string()
            location.root_is_set = True
        elif directive == UPLOAD_DIR:
            location.upload_dir = extractor.single_string()
            location.upl_dir_is_set = True
        elif directive == INDEX_DIR:
            location.index = extractor.single_string()
            location.index_is_set = True
        elif directive == ALLOWED_METHODS_DIR:
            location.allowed_methods = extractor.multi_string(extractor.validate_method)
            location.methods_is_set = True
        elif directive == REDIRECTION_DIR:
            location.redirection = extractor.redirection()
            location.redirect_is_set = True
        elif directive == ALIAS_DIR:
            location.alias = extractor.single_string()
            location.alias_is_set = True
        elif directive == CGI_EXCT_DIR:
            location.set_cgi_info(*extractor.cgi_info())

    def _validate_config(self) -> None:
        servers: list[ServerContext] = self.http_config.servers
        if not servers:
            raise ConfigError(
                "Configuration Error: Please specify at least one server "
                "within the Http context."
            )
        for server in servers:
            if not server.host:
                raise ConfigError(
                    "Configuration Error: Hostname required for server "
                    "definition but not provided."
                )
            if not server.root_directory:
                raise ConfigError(
                    "Configuration Error: Root directory required for server "
                    "definition but not provided."
                )
            if not server.ports:
                raise ConfigError(
                    "Configuration Error: Please specify a port for all servers "
                    "to listen on."
                )


def parse_config_text(text: str, file_name: str = "") -> HttpContext:
    """Parse configuration text held in memory."""
    return ConfigParser(tokenize_text(text), file_name).parse()


def parse_config(file_name: str) -> HttpContext:
    """Parse the configuration file at ``file_name``."""
    return ConfigParser(tokenize_file(file_name), file_name).parse()