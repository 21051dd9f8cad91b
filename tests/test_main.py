import logging
import sys

import pytest

from edgeservice.config import ConfigError
from edgeservice.main import init_logging, main, parse_args


@pytest.fixture(autouse=True)
def restore_root_logging():
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in before:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture
def fake_program(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "argv", [str(tmp_path / "edgeservice")])
    return tmp_path


@pytest.mark.parametrize(
    "argv, expected",
    [
        (["-c", "conf.json"], "conf.json"),
        (["-x", "-c", "a.json", "-c", "b.json"], "a.json"),
        (["-c"], None),
        ([], None),
        (["conf.json"], None),
    ],
)
def test_parse_args(argv, expected):
    assert parse_args(argv) == expected


def test_init_logging_writes_file(tmp_path):
    handler = init_logging(tmp_path / "log")
    logging.getLogger("edgeservice.test").info("hello there")
    handler.flush()
    text = (tmp_path / "log" / "edgeservice.log").read_text(encoding="utf-8")
    assert "[INFO] hello there" in text
    assert "[thread " in text


def test_init_logging_failure(tmp_path, capsys):
    blocker = tmp_path / "blocked"
    blocker.write_text("x")
    assert init_logging(blocker) is None
    assert "Log init failed" in capsys.readouterr().err


def test_main_without_config_prints_usage(fake_program, capsys):
    assert main([]) == 1
    assert "-c <config_path>" in capsys.readouterr().err
    assert (fake_program / "log" / "edgeservice.log").exists()


def test_main_flag_without_value(fake_program, capsys):
    assert main(["-c"]) == 1
    assert "用法" in capsys.readouterr().err


def test_main_invalid_config(fake_program):
    config = fake_program / "conf.json"
    config.write_text("{bad", encoding="utf-8")
    with pytest.raises(ConfigError):
        main(["-c", str(config)])