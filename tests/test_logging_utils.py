import logging
from pathlib import Path

import pytest

from sublyne_installer.logging_utils import configure_logging


@pytest.fixture
def fresh_root(monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)
    monkeypatch.setattr(root, "_sublyne_log_path", None, raising=False)
    yield root
    for h in root.handlers:
        h.close()


def test_warnings_reach_console_and_everything_reaches_file(fresh_root, tmp_path, capsys):
    log = tmp_path / "logs" / "install.log"

    actual = configure_logging(str(log))
    logging.getLogger("sublyne_installer.test").info("CMD apt-get update")
    logging.getLogger("sublyne_installer.test").warning("disk almost full")

    assert actual == str(log)
    text = log.read_text()
    assert "INFO sublyne_installer.test: CMD apt-get update" in text
    assert "WARNING sublyne_installer.test: disk almost full" in text
    out = capsys.readouterr().out
    assert "disk almost full" in out
    assert "CMD apt-get update" not in out


def test_unwritable_log_falls_back_to_working_directory(fresh_root, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")

    actual = configure_logging(str(blocker / "install.log"), also_console=False)

    assert actual == str(Path.cwd() / "sublyne-installer.log")


def test_second_call_keeps_first_configuration(fresh_root, tmp_path):
    first = configure_logging(str(tmp_path / "a.log"), also_console=False)
    handlers = list(fresh_root.handlers)

    assert configure_logging(str(tmp_path / "b.log")) == first
    assert fresh_root.handlers == handlers
