"""Directive names and the contexts in which each may appear."""

from __future__ import annotations

# http context
SERVER_DIR = "server"
MAX_BODY_DIR = "client_max_body_size"

CGI_EXCT_DIR = "cgi_extention"
AUTO_INDX_DIR = "autoindex"
ERR_PAGE_DIR = "error_page"
CGI_RD_TMOUT_DIR = "cgi_read_timeout"

# server context
LOCATION_DIR = "location"
LISTEN_DIR = "listen"
SERVER_NAMES_DIR = "server_names"
HOST_DIR = "host"
UPLOAD_DIR = "upload_directory"

ALLOWED_METHODS_DIR = "allowed_methods"
INDEX_DIR = "index"
ROOT_DIR = "root"

# location context
REDIRECTION_DIR = "return"
ALIAS_DIR = "alias"

HTTP_DIRECTIVES = frozenset(
    {
        ERR_PAGE_DIR,
        SERVER_DIR,
        CGI_EXCT_DIR,
        AUTO_INDX_DIR,
        MAX_BODY_DIR,
        CGI_RD_TMOUT_DIR,
    }
)

SERVER_DIRECTIVES = frozenset(
    {
        ERR_PAGE_DIR,
        LOCATION_DIR,
        LISTEN_DIR,
        ROOT_DIR,
        UPLOAD_DIR,
        INDEX_DIR,
        SERVER_NAMES_DIR,
        AUTO_INDX_DIR,
        ALLOWED_METHODS_DIR,
        HOST_DIR,
        CGI_EXCT_DIR,
        CGI_RD_TMOUT_DIR,
    }
)

LOCATION_DIRECTIVES = frozenset(
    {
        ERR_PAGE_DIR,
        ROOT_DIR,
        INDEX_DIR,
        AUTO_INDX_DIR,
        REDIRECTION_DIR,
        ALLOWED_METHODS_DIR,
        ALIAS_DIR,
        CGI_EXCT_DIR,
    }
)


def is_http_ctx_dir(directive: str) -> bool:
    """True when the directive may appear directly in the http block."""
    return directive in HTTP_DIRECTIVES


def is_server_ctx_dir(directive: str) -> bool:
    """True when the directive may appear in a server block."""
    return directive in SERVER_DIRECTIVES


def is_location_ctx_dir(directive: str) -> bool:
    """True when the directive may appear in a location block."""
    return directive in LOCATION_DIRECTIVES


def is_valid_directive(directive: str) -> bool:
    """True when the directive is known in any context."""
    return (
        is_http_ctx_dir(directive)
        or is_server_ctx_dir(directive)
        or is_location_ctx_dir(directive)
    )