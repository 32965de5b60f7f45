import logging
from unittest.mock import MagicMock

import pytest

from daybook import __version__, cli
from daybook.storage import Storage


@pytest.fixture
def dirs(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setattr(cli, "setup_logging", MagicMock())
    return tmp_path


def test_ls(dirs, capsys):
    assert cli.main(["ls"]) == 0
    assert capsys.readouterr().out == f"{dirs / 'data' / 'daybook'}\n"


def test_ls_config(dirs, capsys):
    assert cli.main(["ls", "config"]) == 0
    path = dirs / "config" / "daybook" / "config.json"
    assert capsys.readouterr().out == f"{path}\n"
    assert path.exists()


def test_cat_today(dirs, capsys):
    assert cli.main(["cat"]) == 0
    out = capsys.readouterr().out
    assert "— Today" in out
    assert "[0] What did you do yesterday?" in out


def test_bad_interval(dirs, capsys):
    assert cli.main(["view", "next", "week"]) == 1
    assert "unsupported interval" in capsys.readouterr().err


def test_broken_config_falls_back(dirs, capsys):
    path = dirs / "config" / "daybook" / "config.json"
    path.parent.mkdir(parents=True)
    path.write_text("{oops")
    assert cli.main(["view"]) == 0
    captured = capsys.readouterr()
    assert "using default questions" in captured.err
    assert captured.out == "No entries found for today.\n"


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--version"])
    assert exc.value.code == 0
    assert capsys.readouterr().out.strip() == f"daybook {__version__}"


def test_setup_logging_writes_to_data_dir(tmp_path):
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    storage = Storage(data_dir=tmp_path / "data", config_dir=tmp_path / "config")
    try:
        cli.setup_logging(storage, verbose=True, interactive=True)
        added = [h for h in root.handlers if h not in before]
        assert len(added) == 1
        logging.getLogger("daybook.test").debug("hello")
        added[0].flush()
        assert "hello" in (tmp_path / "data" / cli.LOG_NAME).read_text(encoding="utf-8")
    finally:
        for handler in [h for h in root.handlers if h not in before]:
            root.removeHandler(handler)
            handler.close()
        cli._handlers.clear()
        root.setLevel(level)


def test_setup_logging_replaces_its_handlers(tmp_path):
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    first = Storage(data_dir=tmp_path / "one", config_dir=tmp_path / "config")
    second = Storage(data_dir=tmp_path / "two", config_dir=tmp_path / "config")
    try:
        cli.setup_logging(first, interactive=True)
        old = [h for h in root.handlers if h not in before]
        cli.setup_logging(second, interactive=False)
        cli.setup_logging(second, interactive=False)
        added = [h for h in root.handlers if h not in before]
        assert len(added) == 2
        assert not set(old) & set(added)
        assert old[0].stream is None
        files = [h for h in added if isinstance(h, logging.FileHandler)]
        assert files[0].baseFilename == str(tmp_path / "two" / cli.LOG_NAME)
    finally:
        for handler in [h for h in root.handlers if h not in before]:
            root.removeHandler(handler)
            handler.close()
        cli._handlers.clear()
        root.setLevel(level)
