"""
Flat-file persistence: one JSON document per day plus a JSON config file.

Day files live in the data dir as ``YYYY-MM-DD.json``:

    {"date": "2024-05-01",
     "answers": {"What did you do today?": [{"time": "...", "response": "..."}]}}
"""

import contextlib
import json
import logging
import os
import sys
import tempfile
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path

from .config import BOOL_FIELDS, DEFAULT_MARKERS, DEFAULT_QUESTIONS, INT_FIELDS, Config

logger = logging.getLogger(__name__)

APP_NAME      = "daybook"
CONFIG_NAME   = "config.json"
DATE_FORMAT   = "%Y-%m-%d"
JSON_INDENT   = 2
DATA_ENCODING = "utf-8"


class StorageError(Exception):
    """A day file or the config file could not be read or written."""


# ─── Data ─────────────────────────────────────────────────────────────────────

@dataclass
class Entry:
    time: str
    response: str

    def to_dict(self):
        return {"time": self.time, "response": self.response}


@dataclass
class Record:
    date: date
    answers: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, day, raw):
        if not isinstance(raw, dict):
            raise ValueError("day file root must be an object")
        answers = {}
        for question, items in (raw.get("answers") or {}).items():
            entries = [Entry(time=str(it.get("time", "")), response=str(it.get("response", "")))
                       for it in items or [] if isinstance(it, dict)]
            if entries:
                answers[question] = entries
        return cls(date=day, answers=answers)

    def to_dict(self):
        return {
            "date": self.date.strftime(DATE_FORMAT),
            "answers": {q: [e.to_dict() for e in entries]
                        for q, entries in self.answers.items() if entries},
        }

    def has_entries(self):
        return any(self.answers.values())

    def prune(self):
        """Drop question keys whose entry list became empty."""
        for question in [q for q, entries in self.answers.items() if not entries]:
            del self.answers[question]


def now_stamp():
    return datetime.now().astimezone().isoformat(timespec="seconds")


def display_time(value):
    if not value:
        return ""
    # fromisoformat only accepts a "Z" suffix from 3.11 on
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value).strftime("%H:%M")
    except ValueError:
        return value


# ─── Paths ────────────────────────────────────────────────────────────────────

def default_config_dir(environ=None):
    environ = os.environ if environ is None else environ
    if environ.get("XDG_CONFIG_HOME"):
        return Path(environ["XDG_CONFIG_HOME"]) / APP_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    return Path.home() / ".config" / APP_NAME


def default_data_dir(environ=None):
    environ = os.environ if environ is None else environ
    if environ.get("XDG_DATA_HOME"):
        return Path(environ["XDG_DATA_HOME"]) / APP_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    return Path.home() / ".local" / "share" / APP_NAME


def write_atomic_json(path, data):
    """Write JSON atomically using tempfile + fsync + replace."""
    path.parent.mkdir(parents=True, exist_ok=True)
    serialized = json.dumps(data, indent=JSON_INDENT, ensure_ascii=False)
    fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding=DATA_ENCODING) as f:
            f.write(serialized)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp_path.unlink()
        raise


# ─── Gateway ──────────────────────────────────────────────────────────────────

class Storage:
    def __init__(self, data_dir=None, config_dir=None):
        self.data_dir   = Path(data_dir) if data_dir else default_data_dir()
        self.config_dir = Path(config_dir) if config_dir else default_config_dir()

    # ── day records ──────────────────────────────────────────────────────────

    def record_path(self, day):
        return self.data_dir / f"{day.strftime(DATE_FORMAT)}.json"

    def read_record_if_exists(self, day):
        path = self.record_path(day)
        if not path.exists():
            return None
        try:
            raw = json.loads(path.read_text(encoding=DATA_ENCODING))
            return Record.from_dict(day, raw)
        except (OSError, ValueError, AttributeError, TypeError) as ex:
            logger.warning("Unreadable day file %s: %s", path, ex)
            raise StorageError(f"cannot read {path}: {ex}") from ex

    def load_record(self, day):
        record = self.read_record_if_exists(day)
        return record if record is not None else Record(date=day)

    def save_record(self, day, record):
        record.date = day
        record.prune()
        path = self.record_path(day)
        try:
            write_atomic_json(path, record.to_dict())
        except OSError as ex:
            logger.error("Failed to save %s: %s", path, ex)
            raise StorageError(f"cannot write {path}: {ex}") from ex
        logger.debug("Saved %s (%d questions)", path, len(record.answers))

    # ── config ───────────────────────────────────────────────────────────────

    def config_path(self):
        return self.config_dir / CONFIG_NAME

    def _read_config_map(self):
        path = self.config_path()
        try:
            raw = json.loads(path.read_text(encoding=DATA_ENCODING))
        except (OSError, ValueError) as ex:
            raise StorageError(f"cannot read {path}: {ex}") from ex
        if not isinstance(raw, dict):
            raise StorageError(f"cannot read {path}: root must be an object")
        return raw

    def load_config(self):
        """Load the config, creating the file with defaults if it is missing."""
        path = self.config_path()
        if not path.exists():
            cfg = Config(questions=list(DEFAULT_QUESTIONS))
            self.save_config(cfg)
            logger.info("Default config file created at %s", path)
            return cfg
        raw = self._read_config_map()
        try:
            cfg = Config.from_dict(raw)
        except ValueError as ex:
            raise StorageError(f"invalid config {path}: {ex}") from ex
        if _apply_default_markers(raw):
            try:
                write_atomic_json(path, raw)
            except OSError as ex:
                logger.warning("Could not refresh default markers in %s: %s", path, ex)
        return cfg

    def save_config(self, cfg):
        """Write ``cfg`` while keeping any unknown keys already in the file."""
        path = self.config_path()
        raw = {}
        if path.exists():
            try:
                raw = self._read_config_map()
            except StorageError:
                logger.warning("Overwriting unreadable config %s", path)
                raw = {}
        cfg = cfg.normalized()
        for key in ["questions", *BOOL_FIELDS, *INT_FIELDS]:
            raw.pop(key, None)
        raw.update(cfg.to_dict())
        _apply_default_markers(raw)
        try:
            write_atomic_json(path, raw)
        except OSError as ex:
            logger.error("Failed to save config %s: %s", path, ex)
            raise StorageError(f"cannot write {path}: {ex}") from ex


def _apply_default_markers(raw):
    changed = False
    for key, value in DEFAULT_MARKERS.items():
        if key in raw and raw[key] == value:
            continue
        raw[key] = value
        changed = True
    return changed
