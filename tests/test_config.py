import pytest

from edgeservice.config import ConfigError, get_config, load_global_config


def _write(tmp_path, name, content):
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


def test_load_valid_object(tmp_path):
    path = _write(tmp_path, "conf.json", '{"rest_port": 18080, "grpc_port": 50051}')
    loaded = load_global_config(path)
    assert dict(loaded) == {"rest_port": 18080, "grpc_port": 50051}
    assert dict(get_config()) == {"rest_port": 18080, "grpc_port": 50051}


def test_reload_replaces_previous_values(tmp_path):
    load_global_config(_write(tmp_path, "a.json", '{"a": 1}'))
    load_global_config(_write(tmp_path, "b.json", '{"b": 2}'))
    assert dict(get_config()) == {"b": 2}


def test_missing_file_keeps_config(tmp_path):
    load_global_config(_write(tmp_path, "conf.json", '{"ai_service_port": 1055}'))
    load_global_config(tmp_path / "does-not-exist.json")
    assert dict(get_config()) == {"ai_service_port": 1055}


def test_invalid_json_raises(tmp_path):
    path = _write(tmp_path, "bad.json", "{'rest_port': 1,}")
    with pytest.raises(ConfigError):
        load_global_config(path)
    assert dict(get_config()) == {}


def test_nan_constant_is_rejected(tmp_path):
    path = _write(tmp_path, "nan.json", '{"x": NaN}')
    with pytest.raises(ConfigError):
        load_global_config(path)


def test_empty_file_raises(tmp_path):
    path = _write(tmp_path, "empty.json", "")
    with pytest.raises(ConfigError):
        load_global_config(path)


def test_unreadable_path_clears_config(tmp_path):
    load_global_config(_write(tmp_path, "conf.json", '{"a": 1}'))
    directory = tmp_path / "dir"
    directory.mkdir()
    load_global_config(directory)
    assert dict(get_config()) == {}


def test_non_object_top_level_gives_empty_config(tmp_path):
    load_global_config(_write(tmp_path, "conf.json", '{"a": 1}'))
    load_global_config(_write(tmp_path, "list.json", "[1, 2, 3]"))
    assert dict(get_config()) == {}


def test_config_view_is_read_only(tmp_path):
    load_global_config(_write(tmp_path, "conf.json", '{"a": 1}'))
    with pytest.raises(TypeError):
        get_config()["a"] = 2
    assert get_config()["a"] == 1