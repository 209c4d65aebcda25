import pytest

from webserv.body import (
    find_chunk_content,
    hex_to_size,
    parse_body,
    trim_content_to_boundary_segment,
)
from webserv.request import BadRequest, Request

BOUNDARY = "XyZ"


def _multipart_request(tmp_path, body):
    return Request(
        method="POST",
        is_multipart=True,
        boundary=BOUNDARY,
        upload_dir=str(tmp_path),
        content_length=len(body),
        content_length_is_set=True,
    )


def _part(name, data, file_name=None):
    disposition = f'form-data; name="{name}"'
    if file_name is not None:
        disposition += f'; filename="{file_name}"'
    return f"--{BOUNDARY}\r\nContent-Disposition: {disposition}\r\n\r\n{data}\r\n"


def _multipart(*parts):
    return "".join(parts) + f"--{BOUNDARY}--\r\n"


@pytest.mark.parametrize("value", [0, 1, 26, 4096, 2**64 - 1])
def test_hex_to_size_round_trip(value):
    assert hex_to_size(Request(), f"{value:X}") == value


@pytest.mark.parametrize("chunk_size", ["01", "1" * 17, "G", "a"])
def test_hex_to_size_rejects_malformed(chunk_size):
    request = Request()
    with pytest.raises(BadRequest) as info:
        hex_to_size(request, chunk_size)
    assert info.value.status_code == 400
    assert request.is_bad


def test_trim_without_carriage_return_is_empty():
    assert trim_content_to_boundary_segment("\r\n--b\r\n", "xyz") == ""


def test_trim_keeps_boundary_prefix():
    assert trim_content_to_boundary_segment("\r\n--b\r\n", "abc\r\n--") == "\r\n--"


def test_trim_drops_non_matching_tail():
    assert trim_content_to_boundary_segment("\r\n--b\r\n", "a\r\nx") == ""


def test_content_length_pieces():
    request = Request(content_length=5, content_length_is_set=True)
    assert find_chunk_content(request, "hello world") == ("hello", " world")
    assert request.total_body_length == 5
    assert find_chunk_content(request, " world") == ("", " world")
    assert request.body_parsed


def test_content_length_split_across_reads():
    request = Request(content_length=10, content_length_is_set=True)
    assert find_chunk_content(request, "hello") == ("hello", "")
    assert request.size_left == 5
    assert find_chunk_content(request, "world!") == ("world", "!")
    assert request.size_left == 0


def test_chunked_pieces():
    request = Request(is_chunked=True)
    content, rest = find_chunk_content(request, "5\r\nhello\r\n0\r\n\r\n")
    assert (content, rest) == ("hello", "\r\n0\r\n\r\n")
    assert find_chunk_content(request, rest) == ("", "\r\n")
    assert request.body_parsed
    assert request.total_body_length == 5


def test_incomplete_chunk_header_is_kept():
    request = Request(is_chunked=True)
    assert find_chunk_content(request, "5") == ("", "")
    assert request.unparsed_msg == "\r\n5"
    assert not request.body_parsed


def test_body_too_large():
    request = Request(content_length=5, content_length_is_set=True, max_body_size=3)
    with pytest.raises(BadRequest) as info:
        find_chunk_content(request, "hello")
    assert info.value.status_code == 413


def test_garbage_after_chunk_is_rejected():
    request = Request(is_chunked=True)
    assert find_chunk_content(request, "5\r\nhelloXX") == ("hello", "XX")
    with pytest.raises(BadRequest) as info:
        find_chunk_content(request, "XX")
    assert info.value.status_code == 400


def test_overlong_chunk_header_is_rejected():
    request = Request(is_chunked=True, first_chunk_fixed=True)
    with pytest.raises(BadRequest) as info:
        find_chunk_content(request, "\r\n" + "1" * 18)
    assert info.value.status_code == 400


def test_leading_zero_chunk_size_is_rejected():
    with pytest.raises(BadRequest) as info:
        parse_body(Request(is_chunked=True), "05\r\nhello\r\n")
    assert info.value.status_code == 400


def test_parse_body_returns_data_after_body():
    request = Request(content_length=4, content_length_is_set=True)
    assert parse_body(request, "abcdEXTRA") == "EXTRA"
    assert request.is_ready
    assert request.total_body_length == 4


def test_parse_body_last_chunk_only():
    request = Request(is_chunked=True)
    assert parse_body(request, "0\r\n\r\n") == "\r\n"
    assert request.is_ready


def test_parse_body_incomplete_is_not_ready():
    request = Request(content_length=10, content_length_is_set=True)
    assert parse_body(request, "hello") == ""
    assert not request.is_ready


def test_cgi_chunked_body_is_written(tmp_path):
    path = tmp_path / "cgi_input"
    handle = open(path, "wb")
    request = Request(is_chunked=True, is_cgi_request=True, cgi_content_file=handle)
    parse_body(request, "5\r\nhello\r\n6\r\n world\r\n0\r\n\r\n")
    assert path.read_bytes() == b"hello world"
    assert handle.closed
    assert request.cgi_content_file is None
    assert request.total_body_length == 11


def test_cgi_text_stream(tmp_path):
    path = tmp_path / "cgi_input"
    handle = open(path, "w", encoding="latin-1")
    request = Request(
        content_length=5,
        content_length_is_set=True,
        is_cgi_request=True,
        cgi_content_file=handle,
    )
    assert parse_body(request, "hello") == ""
    assert request.is_ready
    assert request.total_body_length == 5
    assert handle.closed
    assert path.read_text(encoding="latin-1") == "hello"


def test_multipart_upload(tmp_path):
    body = _multipart(_part("file", "hello\r\nworld", "a.txt"))
    request = _multipart_request(tmp_path, body)
    assert parse_body(request, body) == ""
    assert request.is_ready
    assert request.last_part_reached
    assert (tmp_path / "a.txt").read_bytes() == b"hello\r\nworld"


def test_multipart_plain_field_is_dropped(tmp_path):
    body = _multipart(_part("field", "value"), _part("f", "data", "b.txt"))
    request = _multipart_request(tmp_path, body)
    parse_body(request, body)
    assert (tmp_path / "b.txt").read_bytes() == b"data"
    assert [part.file_name for part in request.parts] == ["b.txt"]


def test_multipart_preamble_is_ignored(tmp_path):
    body = "ignored preamble\r\n" + _multipart(_part("file", "data", "c.txt"))
    request = _multipart_request(tmp_path, body)
    parse_body(request, body)
    assert (tmp_path / "c.txt").read_bytes() == b"data"


def test_multipart_slash_in_file_name(tmp_path):
    body = _multipart(_part("file", "data", "x/y.txt"))
    request = _multipart_request(tmp_path, body)
    parse_body(request, body)
    assert (tmp_path / "x_y.txt").read_bytes() == b"data"
    assert request.parts[0].file_name == "x_y.txt"


def test_multipart_percent_encoded_file_name(tmp_path):
    body = _multipart(_part("file", "data", "a%41.txt"))
    request = _multipart_request(tmp_path, body)
    parse_body(request, body)
    assert (tmp_path / "aA.txt").read_bytes() == b"data"


@pytest.mark.parametrize("file_name", ["a%00.txt", "a%C3.txt", "a%4"])
def test_multipart_bad_percent_encoding(tmp_path, file_name):
    body = _multipart(_part("file", "data", file_name))
    request = _multipart_request(tmp_path, body)
    with pytest.raises(BadRequest) as info:
        parse_body(request, body)
    assert info.value.status_code == 400


def test_multipart_file_name_without_name(tmp_path):
    body = (
        f'--{BOUNDARY}\r\nContent-Disposition: form-data; filename="a.txt"\r\n\r\n'
        f"data\r\n--{BOUNDARY}--\r\n"
    )
    request = _multipart_request(tmp_path, body)
    with pytest.raises(BadRequest) as info:
        parse_body(request, body)
    assert info.value.status_code == 400


def test_boundary_inside_data_removes_upload(tmp_path):
    body = _multipart(_part("file", f"hel {BOUNDARY} lo", "a.txt"))
    request = _multipart_request(tmp_path, body)
    with pytest.raises(BadRequest) as info:
        parse_body(request, body)
    assert info.value.status_code == 400
    assert (tmp_path / "a.txt").exists()
    request.close()
    assert not (tmp_path / "a.txt").exists()


@pytest.mark.parametrize("marker", ["; filename", "lo\r\nworld", "Z--"])
def test_multipart_split_across_reads(tmp_path, marker):
    body = _multipart(_part("file", "hello\r\nworld", "a.txt"))
    split = body.index(marker)
    request = _multipart_request(tmp_path, body)
    parse_body(request, body[:split])
    assert not request.is_ready
    parse_body(request, body[split:])
    assert request.is_ready
    request.close()
    assert (tmp_path / "a.txt").read_bytes() == b"hello\r\nworld"