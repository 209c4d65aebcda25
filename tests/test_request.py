import pytest

from webserv.request import MAX_HEAD_LENGTH, BadRequest, Part, Request


def test_mark_bad_raises_and_records_code():
    request = Request()
    with pytest.raises(BadRequest) as info:
        request.mark_bad(400)
    assert info.value.status_code == 400
    assert request.is_bad
    assert request.bad_status_code == 400


def test_fresh_request_defaults():
    request = Request()
    assert request.bad_status_code == 200
    assert request.is_persistent
    assert request.content_type == "text/plain"
    assert not request.is_bad


@pytest.mark.parametrize(
    "version, persistent", [("HTTP/1.0", False), ("HTTP/1.1", True)]
)
def test_set_version_controls_persistence(version, persistent):
    request = Request()
    request.set_version(version)
    assert request.version == version
    assert request.is_persistent is persistent


def test_set_content_length_sets_flag():
    request = Request()
    request.set_content_length(17)
    assert request.content_length == 17
    assert request.content_length_is_set


def test_set_header_chunked_marks_request():
    request = Request()
    request.set_header("TRANSFER-ENCODING", "chunked")
    assert request.is_chunked
    assert request.headers["TRANSFER-ENCODING"] == "chunked"


def test_set_header_replaces_value():
    request = Request()
    request.set_header("ACCEPT", "a")
    request.set_header("ACCEPT", "b")
    assert request.headers == {"ACCEPT": "b"}
    assert not request.is_chunked


def test_append_body_concatenates():
    request = Request()
    request.append_body("abc")
    request.append_body("def")
    assert request.body == "abcdef"


def test_take_unparsed_returns_and_clears():
    request = Request()
    request.store_unparsed("GET /")
    request.store_unparsed(" HTTP")
    assert request.take_unparsed() == "GET / HTTP"
    assert request.unparsed_msg == ""


def test_overlong_start_line_is_414():
    request = Request()
    with pytest.raises(BadRequest) as info:
        request.store_unparsed("a" * (MAX_HEAD_LENGTH + 1))
    assert info.value.status_code == 414


def test_overlong_headers_are_431():
    request = Request(start_line_parsed=True)
    with pytest.raises(BadRequest) as info:
        request.store_unparsed("a" * (MAX_HEAD_LENGTH + 1))
    assert info.value.status_code == 431


def test_long_body_data_is_kept():
    request = Request(start_line_parsed=True, headers_parsed=True)
    data = "a" * (MAX_HEAD_LENGTH + 1)
    request.store_unparsed(data)
    assert request.unparsed_msg == data


def test_build_boundary_kinds():
    request = Request(boundary="abc")
    assert request.build_boundary(1) == "--abc\r\n"
    assert request.build_boundary(2) == "\r\n--abc--\r\n"
    assert request.build_boundary(3) == "\r\n--abc\r\n"


def test_latest_part_reuses_incomplete_part():
    request = Request()
    first = request.latest_part()
    assert first.is_new and not first.is_complete and not first.header_parsed
    assert request.latest_part() is first
    first.is_complete = True
    second = request.latest_part()
    assert second is not first
    assert request.parts == [first, second]


def test_drop_last_part():
    request = Request()
    part = request.latest_part()
    part.is_complete = True
    request.latest_part()
    request.drop_last_part()
    assert request.parts == [part]


def _upload(request, tmp_path, name):
    path = tmp_path / name
    part = Part(file_name=name, file=open(path, "wb"), file_opened=True)
    request.parts.append(part)
    return path, part


def test_close_removes_uploads_of_bad_request(tmp_path):
    request = Request(upload_dir=str(tmp_path))
    path, part = _upload(request, tmp_path, "up.txt")
    with pytest.raises(BadRequest):
        request.mark_bad(413)
    request.close()
    assert not path.exists()
    assert request.parts == []


def test_close_keeps_uploads_of_good_request(tmp_path):
    path = tmp_path / "up.txt"
    with Request(upload_dir=str(tmp_path)) as request:
        _, part = _upload(request, tmp_path, "up.txt")
        part.file.write(b"data")
    assert path.read_bytes() == b"data"
    assert part.file is None