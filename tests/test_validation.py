import pytest

from edgeservice.validation import (
    CameraIdError,
    executable_dir,
    generate_uuid,
    is_digits,
    is_valid_host,
    is_valid_url,
    is_valid_uuid,
    parse_camera_id,
)


def test_executable_dir_is_existing_directory():
    assert executable_dir().is_dir()


@pytest.mark.parametrize(
    "text, expected",
    [("123", True), ("0", True), ("", False), ("12a", False), ("-1", False),
     (" 1", False), ("\u0661\u0662", False)],
)
def test_is_digits(text, expected):
    assert is_digits(text) is expected


def test_parse_camera_id_from_digit_string():
    assert parse_camera_id({"camera_id": "123"}, "camera_id") == 123


def test_parse_camera_id_from_integer():
    assert parse_camera_id({"camera_id": 7}, "camera_id") == 7


def test_parse_camera_id_from_float_truncates():
    assert parse_camera_id({"camera_id": 3.9}, "camera_id") == 3


def test_parse_camera_id_largest_value():
    assert parse_camera_id({"id": "18446744073709551615"}, "id") == 2**64 - 1


def test_parse_camera_id_negative_integer_stays_in_range():
    value = parse_camera_id({"camera_id": -1}, "camera_id")
    assert 0 <= value < 2**64


def test_parse_camera_id_missing():
    with pytest.raises(CameraIdError) as info:
        parse_camera_id({}, "camera_id")
    assert str(info.value) == "camera_id 字段缺失"


def test_parse_camera_id_non_mapping_is_missing():
    with pytest.raises(CameraIdError) as info:
        parse_camera_id([1, 2], "camera_id")
    assert str(info.value) == "camera_id 字段缺失"


def test_parse_camera_id_non_digit_string():
    with pytest.raises(CameraIdError) as info:
        parse_camera_id({"camera_id": "abc"}, "camera_id")
    assert str(info.value) == "camera_id 必须为数字字符串"


def test_parse_camera_id_overflowing_string():
    with pytest.raises(CameraIdError) as info:
        parse_camera_id({"camera_id": "99999999999999999999"}, "camera_id")
    assert str(info.value) == "camera_id 字段解析异常"


@pytest.mark.parametrize("value", [True, None, [1], {"a": 1}])
def test_parse_camera_id_unsupported_types(value):
    with pytest.raises(CameraIdError) as info:
        parse_camera_id({"camera_id": value}, "camera_id")
    assert str(info.value) == "camera_id 字段类型不支持"


def test_camera_id_error_is_value_error():
    with pytest.raises(ValueError):
        parse_camera_id({}, "camera_id")


@pytest.mark.parametrize(
    "url, expected",
    [
        ("rtsp://example.com/stream", True),
        ("HTTP://example.com/live/1", True),
        ("https://example.com:8443/a?b=c", True),
        ("ftp://example.com/file", False),
        ("rtsp://", False),
        ("http://exa mple.com", False),
        ("http://example.com\n", False),
        ("example.com", False),
    ],
)
def test_is_valid_url(url, expected):
    assert is_valid_url(url) is expected


def test_generated_uuid_is_valid_and_unique():
    first, second = generate_uuid(), generate_uuid()
    assert is_valid_uuid(first)
    assert is_valid_uuid(second)
    assert first != second
    assert len(first) == 36


@pytest.mark.parametrize(
    "value, expected",
    [
        ("123E4567-E89B-12D3-A456-426614174000", True),
        ("123e4567-e89b-12d3-a456-426614174000", True),
        ("123e4567-e89b-12d3-a456-42661417400", False),
        ("123e4567-e89b-12d3-a456-426614174000x", False),
        ("not-a-uuid", False),
        ("", False),
    ],
)
def test_is_valid_uuid(value, expected):
    assert is_valid_uuid(value) is expected


@pytest.mark.parametrize(
    "host, expected",
    [
        ("192.168.1.10", True),
        ("example.com", True),
        ("edge-node.local", True),
        ("999.1.1.1", True),
        ("exa mple.com", False),
        ("example.com:80", False),
        ("", False),
        ("under_score", False),
    ],
)
def test_is_valid_host(host, expected):
    assert is_valid_host(host) is expected