"""
Configuration values for daybook.

Every option is optional in the file; the resolver functions below supply the
built-in default whenever a field is missing (or, for durations, non-positive).
"""

from dataclasses import dataclass, field, replace
from typing import Optional

DEFAULT_QUESTIONS = [
    "What did you do yesterday?",
    "What will/did you do today?",
    "Are you blocked with anything?",
]

DEFAULT_SHOW_HINTS          = True
DEFAULT_AUTO_INSERT         = True
DEFAULT_CONTINUE_AFTER_SAVE = True
DEFAULT_LIST_MODE           = False
DEFAULT_AUTO_OPEN_JUMP      = True
DEFAULT_CONFIRM_DELETE      = True
DEFAULT_CONFIRM_ESCAPE      = True
DEFAULT_STATUS_MS           = 1000
DEFAULT_ESCAPE_TIMEOUT_MS   = 1000

# json key -> attribute name
BOOL_FIELDS = {
    "showHints":               "show_hints",
    "autoInsertEntries":       "auto_insert",
    "continueInsertAfterSave": "continue_after_save",
    "defaultListMode":         "default_list_mode",
    "autoOpenIndexJump":       "auto_open_jump",
    "confirmDelete":           "confirm_delete",
    "confirmEscapeWithText":   "confirm_escape",
}

INT_FIELDS = {
    "statusMessageDurationMs": "status_ms",
    "escapeConfirmTimeoutMs":  "escape_timeout_ms",
}

DEFAULT_MARKERS = {
    "_showHints":               DEFAULT_SHOW_HINTS,
    "_autoInsertEntries":       DEFAULT_AUTO_INSERT,
    "_continueInsertAfterSave": DEFAULT_CONTINUE_AFTER_SAVE,
    "_defaultListMode":         DEFAULT_LIST_MODE,
    "_autoOpenIndexJump":       DEFAULT_AUTO_OPEN_JUMP,
    "_confirmDelete":           DEFAULT_CONFIRM_DELETE,
    "_confirmEscapeWithText":   DEFAULT_CONFIRM_ESCAPE,
    "_statusMessageDurationMs": DEFAULT_STATUS_MS,
    "_escapeConfirmTimeoutMs":  DEFAULT_ESCAPE_TIMEOUT_MS,
}


@dataclass
class Config:
    """User configuration as stored on disk. ``None`` means "use the default"."""

    questions: list = field(default_factory=list)
    show_hints: Optional[bool] = None
    auto_insert: Optional[bool] = None
    continue_after_save: Optional[bool] = None
    default_list_mode: Optional[bool] = None
    auto_open_jump: Optional[bool] = None
    confirm_delete: Optional[bool] = None
    confirm_escape: Optional[bool] = None
    status_ms: Optional[int] = None
    escape_timeout_ms: Optional[int] = None

    @classmethod
    def from_dict(cls, raw):
        if not isinstance(raw, dict):
            raise ValueError("config root must be an object")
        questions = raw.get("questions") or []
        if not isinstance(questions, list):
            raise ValueError("'questions' must be a list")
        cfg = cls(questions=[str(q) for q in questions])
        for key, attr in BOOL_FIELDS.items():
            value = raw.get(key)
            if isinstance(value, bool):
                setattr(cfg, attr, value)
        for key, attr in INT_FIELDS.items():
            value = raw.get(key)
            # bool is an int subclass; a stray true/false is not a duration
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                setattr(cfg, attr, int(value))
        return cfg.normalized()

    def to_dict(self):
        out = {"questions": list(self.questions)}
        for key, attr in BOOL_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                out[key] = value
        for key, attr in INT_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                out[key] = value
        return out

    def normalized(self):
        """Fill in default questions and drop non-positive durations."""
        cfg = replace(self, questions=list(self.questions) or list(DEFAULT_QUESTIONS))
        if cfg.status_ms is not None and cfg.status_ms <= 0:
            cfg.status_ms = None
        if cfg.escape_timeout_ms is not None and cfg.escape_timeout_ms <= 0:
            cfg.escape_timeout_ms = None
        return cfg

    def copy(self):
        return replace(self, questions=list(self.questions))


# ─── Resolution ───────────────────────────────────────────────────────────────

def _flag(value, default):
    return default if value is None else bool(value)


def _duration(value, default):
    if value is None or value <= 0:
        return default
    return int(value)


def hints_enabled(cfg):
    return _flag(cfg.show_hints, DEFAULT_SHOW_HINTS)

def auto_insert_enabled(cfg):
    return _flag(cfg.auto_insert, DEFAULT_AUTO_INSERT)

def continue_after_save_enabled(cfg):
    return _flag(cfg.continue_after_save, DEFAULT_CONTINUE_AFTER_SAVE)

def list_mode_default(cfg):
    return _flag(cfg.default_list_mode, DEFAULT_LIST_MODE)

def auto_open_jump_enabled(cfg):
    return _flag(cfg.auto_open_jump, DEFAULT_AUTO_OPEN_JUMP)

def confirm_delete_enabled(cfg):
    return _flag(cfg.confirm_delete, DEFAULT_CONFIRM_DELETE)

def confirm_escape_enabled(cfg):
    return _flag(cfg.confirm_escape, DEFAULT_CONFIRM_ESCAPE)

def status_duration_ms(cfg):
    return _duration(cfg.status_ms, DEFAULT_STATUS_MS)

def escape_timeout_ms(cfg):
    return _duration(cfg.escape_timeout_ms, DEFAULT_ESCAPE_TIMEOUT_MS)
