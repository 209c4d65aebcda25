import pytest

from webserv.directives import (
    is_http_ctx_dir,
    is_location_ctx_dir,
    is_server_ctx_dir,
    is_valid_directive,
)


@pytest.mark.parametrize(
    "directive",
    ["error_page", "server", "cgi_extention", "autoindex", "client_max_body_size", "cgi_read_timeout"],
)
def test_http_directives(directive):
    assert is_http_ctx_dir(directive) is True


@pytest.mark.parametrize("directive", ["listen", "location", "root", "return", "alias"])
def test_not_http_directives(directive):
    assert is_http_ctx_dir(directive) is False


@pytest.mark.parametrize(
    "directive",
    [
        "error_page",
        "location",
        "listen",
        "root",
        "upload_directory",
        "index",
        "server_names",
        "autoindex",
        "allowed_methods",
        "host",
        "cgi_extention",
        "cgi_read_timeout",
    ],
)
def test_server_directives(directive):
    assert is_server_ctx_dir(directive) is True


@pytest.mark.parametrize("directive", ["server", "return", "alias", "client_max_body_size"])
def test_not_server_directives(directive):
    assert is_server_ctx_dir(directive) is False


@pytest.mark.parametrize(
    "directive",
    ["error_page", "root", "index", "autoindex", "return", "allowed_methods", "alias", "cgi_extention"],
)
def test_location_directives(directive):
    assert is_location_ctx_dir(directive) is True


@pytest.mark.parametrize(
    "directive", ["listen", "host", "upload_directory", "cgi_read_timeout", "server", "location"]
)
def test_not_location_directives(directive):
    assert is_location_ctx_dir(directive) is False


@pytest.mark.parametrize("directive", ["server", "listen", "alias", "return", "upload_directory"])
def test_known_directives_are_valid(directive):
    assert is_valid_directive(directive) is True


@pytest.mark.parametrize("directive", ["", "http", "Listen", "proxy_pass", "{"])
def test_unknown_directives_are_invalid(directive):
    assert is_valid_directive(directive) is False