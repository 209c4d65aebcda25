import pytest

from webserv.headers import extract_boundary, parse_headers
from webserv.request import BadRequest, Request


def _post():
    return Request(method="POST")


def _status(request, msg):
    with pytest.raises(BadRequest) as info:
        parse_headers(request, msg)
    assert request.is_bad
    return info.value.status_code


def test_headers_end_at_blank_line():
    request = Request(method="GET")
    rest = parse_headers(request, "Accept: */*\r\nUser-Agent: t\r\n\r\nbody")
    assert rest == "body"
    assert request.headers_parsed
    assert request.headers["ACCEPT"] == "*/*"
    assert request.headers["USER_AGENT"] == "t"


def test_incomplete_headers_return_remainder():
    request = Request(method="GET")
    rest = parse_headers(request, "Accept: */*\r\nUser-Ag")
    assert rest == "User-Ag"
    assert not request.headers_parsed
    assert request.headers == {"ACCEPT": "*/*"}


def test_leading_whitespace_of_value_is_trimmed():
    request = Request(method="GET")
    parse_headers(request, "X-Thing: \t value\r\n")
    assert request.headers["X_THING"] == "value"


@pytest.mark.parametrize("line", ["NoColon\r\n", ": value\r\n", "Bad Name: v\r\n", "Na1me: v\r\n"])
def test_invalid_header_lines(line):
    assert _status(Request(method="GET"), line) == 400


def test_forbidden_leading_whitespace():
    assert _status(Request(method="GET"), "X-Thing:\nvalue\r\n") == 400


def test_host_port_is_removed():
    request = Request(method="GET")
    parse_headers(request, "Host: example.com:8080\r\n")
    assert request.headers["HOST"] == "example.com"
    assert request.host_is_set


def test_duplicate_host_is_rejected():
    request = Request(method="GET")
    assert _status(request, "Host: a\r\nHost: b\r\n") == 400


def test_empty_host_is_rejected():
    assert _status(Request(method="GET"), "Host: :80\r\n") == 400


@pytest.mark.parametrize(
    "value, persistent", [("close", False), ("keep-alive", True), ("foo, close", False)]
)
def test_connection_header(value, persistent):
    request = Request(method="GET", is_persistent=not persistent)
    parse_headers(request, f"Connection: {value}\r\n")
    assert request.is_persistent is persistent


def test_content_length_for_post():
    request = _post()
    parse_headers(request, "Content-Length: 42\r\n")
    assert request.content_length == 42
    assert request.content_length_is_set


@pytest.mark.parametrize("value", ["4x", "-1", "", "99999999999999999999"])
def test_bad_content_length(value):
    assert _status(_post(), f"Content-Length: {value}\r\n") == 400


def test_content_length_ignored_for_get():
    request = Request(method="GET")
    parse_headers(request, "Content-Length: abc\r\n")
    assert not request.content_length_is_set
    assert request.headers["CONTENT_LENGTH"] == "abc"


def test_chunked_transfer_encoding():
    request = _post()
    parse_headers(request, "Transfer-Encoding: gzip, chunked\r\n")
    assert request.is_chunked


def test_content_length_after_chunked_is_rejected():
    request = _post()
    msg = "Transfer-Encoding: chunked\r\nContent-Length: 4\r\n"
    assert _status(request, msg) == 400


def test_chunked_after_content_length_is_rejected():
    request = _post()
    msg = "Content-Length: 4\r\nTransfer-Encoding: chunked\r\n"
    assert _status(request, msg) == 400


def test_multipart_content_type():
    request = _post()
    parse_headers(request, "Content-Type: multipart/form-data; boundary=xyz\r\n")
    assert request.is_multipart
    assert request.boundary == "xyz"


def test_multipart_without_boundary():
    assert _status(_post(), "Content-Type: multipart/form-data; charset=a\r\n") == 400


def test_non_multipart_content_type():
    request = _post()
    parse_headers(request, "Content-Type: text/html; boundary=xyz\r\n")
    assert not request.is_multipart
    assert request.boundary == ""


def test_extract_boundary_plain():
    assert extract_boundary("boundary=abc'()+_-./?") == "abc'()+_-./?"


def test_extract_boundary_quoted_allows_separators():
    assert extract_boundary('boundary="a b:c"') == "a b:c"


@pytest.mark.parametrize(
    "parameter", ["boundary=a b", "boundary=", 'boundary=""', "boundary=a*b", "boundary=" + "a" * 71]
)
def test_extract_boundary_invalid(parameter):
    assert extract_boundary(parameter) == ""