"""
Configuration editor screen.

Same message/command protocol as :class:`daybook.session.Session`, over a
form of question rows followed by option rows.
"""

import logging
from dataclasses import dataclass

from . import config as conf
from .editor import FileOpened
from .session import (OPEN_CONFIG, TIMER_STATUS, KeyPress, OpenFile, Quit,
                      StartTimer, TimerFired)
from .storage import StorageError

logger = logging.getLogger(__name__)

ROW_QUESTION = "question"
ROW_ADD      = "add"
ROW_BOOL     = "bool"
ROW_INT      = "int"

BOOL_OPTIONS = [
    ("show_hints",          "Show hints",               conf.hints_enabled),
    ("auto_insert",         "Auto-insert entries",      conf.auto_insert_enabled),
    ("continue_after_save", "Continue after save",      conf.continue_after_save_enabled),
    ("default_list_mode",   "Default list mode",        conf.list_mode_default),
    ("auto_open_jump",      "Auto-open index jumps",    conf.auto_open_jump_enabled),
    ("confirm_delete",      "Confirm deletes",          conf.confirm_delete_enabled),
    ("confirm_escape",      "Confirm escape with text", conf.confirm_escape_enabled),
]

INT_OPTIONS = [
    ("status_ms",         "Status duration",        conf.status_duration_ms),
    ("escape_timeout_ms", "Escape confirm timeout", conf.escape_timeout_ms),
]

LABELS    = {attr: label for attr, label, _ in BOOL_OPTIONS + INT_OPTIONS}
RESOLVERS = {attr: fn for attr, _, fn in BOOL_OPTIONS + INT_OPTIONS}
MS_FIELDS = {attr for attr, _, _ in INT_OPTIONS}

BAD_NUMBER = "Enter a positive number of milliseconds."


@dataclass(frozen=True)
class FormRow:
    kind: str
    index: int = -1
    field: str = ""


class ConfigEditor:
    def __init__(self, cfg, storage):
        self.storage  = storage
        self.values   = cfg.normalized()
        self.original = self.values.copy()
        self.rows     = []
        self.selected = 0

        self.editing       = False
        self.editing_kind  = ""
        self.editing_index = -1
        self.editing_field = ""
        self.edit_original = ""
        self.input_buf     = ""

        self.status       = ""
        self.status_seq   = 0
        self.status_ms    = conf.status_duration_ms(self.values)
        self.confirm_exit = False
        self.error        = None

        self._commands = []
        self.rebuild_rows()

    def update(self, msg):
        if isinstance(msg, KeyPress):
            self._handle_key(msg.key)
        elif isinstance(msg, TimerFired):
            if msg.kind == TIMER_STATUS and msg.seq == self.status_seq:
                self.status = ""
        elif isinstance(msg, FileOpened) and msg.kind == OPEN_CONFIG:
            self._handle_config_file_result(msg.error)
        commands, self._commands = self._commands, []
        return commands

    def set_status(self, text):
        self.status = text
        self.status_seq += 1
        if text and self.status_ms > 0:
            self._commands.append(StartTimer(TIMER_STATUS, self.status_seq, self.status_ms))

    def is_dirty(self):
        return self.values != self.original

    def current_row(self):
        if 0 <= self.selected < len(self.rows):
            return self.rows[self.selected]
        return None

    # ── keys ─────────────────────────────────────────────────────────────────

    def _handle_key(self, key):
        if self.editing:
            if key == "enter":
                self.commit_edit()
            elif key in ("esc", "ctrl+c"):
                self.cancel_edit()
            elif key == "backspace":
                self.input_buf = self.input_buf[:-1]
            elif len(key) == 1 and key.isprintable():
                self.input_buf += key
            return

        if key == "ctrl+c":
            self._commands.append(Quit())
        elif key == "q":
            self.handle_quit()
        elif key in ("up", "k"):
            self.move_selection(-1)
        elif key in ("down", "j"):
            self.move_selection(1)
        elif key in ("enter", " "):
            self.activate_selection()
        elif key == "d":
            self.delete_or_default()
        elif key == "w":
            self.save_changes()
        elif key == "r":
            self.reload_from_disk()
        elif key == "e":
            self.open_config_file()

    def handle_quit(self):
        if not self.is_dirty() or self.confirm_exit:
            self._commands.append(Quit())
            return
        self.confirm_exit = True
        self.set_status("Unsaved changes. Press q again to exit without saving.")

    def move_selection(self, delta):
        if not self.rows:
            self.selected = 0
            return
        self.selected = min(max(self.selected + delta, 0), len(self.rows) - 1)

    def activate_selection(self):
        row = self.current_row()
        if row is None:
            return
        if row.kind == ROW_QUESTION:
            self.start_question_edit(row.index)
        elif row.kind == ROW_ADD:
            self.values.questions.append("")
            self.rebuild_rows()
            self.selected = row.index
            self.start_question_edit(row.index)
        elif row.kind == ROW_BOOL:
            self.toggle_bool(row.field)
        elif row.kind == ROW_INT:
            self.start_int_edit(row.field)

    def delete_or_default(self):
        row = self.current_row()
        if row is None:
            return
        if row.kind == ROW_QUESTION:
            del self.values.questions[row.index]
            self.rebuild_rows()
            self._mark_dirty()
            self.set_status("Question deleted.")
        elif row.kind in (ROW_BOOL, ROW_INT):
            setattr(self.values, row.field, None)
            self._mark_dirty()
            self.set_status("Option reset to default.")

    def toggle_bool(self, field):
        setattr(self.values, field, not RESOLVERS[field](self.values))
        self._mark_dirty()

    # ── inline edits ─────────────────────────────────────────────────────────

    def start_question_edit(self, idx):
        if not 0 <= idx < len(self.values.questions):
            return
        self.editing = True
        self.editing_kind = ROW_QUESTION
        self.editing_index = idx
        self.edit_original = self.values.questions[idx]
        self.input_buf = self.values.questions[idx]

    def start_int_edit(self, field):
        self.editing = True
        self.editing_kind = ROW_INT
        self.editing_field = field
        self.edit_original = ""
        value = getattr(self.values, field)
        self.input_buf = str(value) if value is not None else ""

    def commit_edit(self):
        if self.editing_kind == ROW_QUESTION:
            self._commit_question_edit()
        elif self.editing_kind == ROW_INT:
            self._commit_int_edit()

    def _commit_question_edit(self):
        idx = self.editing_index
        if not 0 <= idx < len(self.values.questions):
            self.finish_editing()
            return
        text = self.input_buf.strip()
        if text:
            self.values.questions[idx] = text
        else:
            del self.values.questions[idx]
        self.finish_editing()
        self.rebuild_rows()
        self._mark_dirty()

    def _commit_int_edit(self):
        raw = self.input_buf.strip()
        if not raw:
            value = None
        else:
            try:
                value = int(raw)
            except ValueError:
                self.set_status(BAD_NUMBER)
                return
            if value <= 0:
                self.set_status(BAD_NUMBER)
                return
        setattr(self.values, self.editing_field, value)
        if self.editing_field == "status_ms":
            self.status_ms = conf.status_duration_ms(self.values)
        self.finish_editing()
        self._mark_dirty()

    def cancel_edit(self):
        idx = self.editing_index
        if (self.editing_kind == ROW_QUESTION and 0 <= idx < len(self.values.questions)
                and not self.edit_original.strip() and not self.values.questions[idx].strip()):
            # abandoned "add question"
            del self.values.questions[idx]
            self.rebuild_rows()
        self.finish_editing()

    def finish_editing(self):
        self.editing = False
        self.editing_kind = ""
        self.editing_index = -1
        self.editing_field = ""
        self.input_buf = ""

    # ── disk ─────────────────────────────────────────────────────────────────

    def save_changes(self):
        try:
            self.storage.save_config(self.values)
        except StorageError as ex:
            logger.warning("Saving config failed: %s", ex)
            self.error = ex
            return
        self.error = None
        self.original = self.values.copy()
        self.confirm_exit = False
        self.set_status("Config saved.")

    def reload_from_disk(self):
        if self._load_from_disk():
            self.set_status("Changes discarded.")

    def _load_from_disk(self):
        try:
            cfg = self.storage.load_config()
        except StorageError as ex:
            logger.warning("Reloading config failed: %s", ex)
            self.error = ex
            return False
        self.error = None
        self.values = cfg.normalized()
        self.original = self.values.copy()
        self.status_ms = conf.status_duration_ms(self.values)
        self.confirm_exit = False
        self.rebuild_rows()
        return True

    def open_config_file(self):
        if self.editing:
            self.set_status("Finish editing before opening the config file.")
            return
        if self.is_dirty():
            self.set_status("Save or discard changes before opening the config file.")
            return
        self.set_status("Opened config file in editor.")
        self._commands.append(OpenFile(self.storage.config_path(), OPEN_CONFIG))

    def _handle_config_file_result(self, error):
        if error is not None:
            self.error = error
            return
        if self._load_from_disk():
            self.set_status("Config reloaded from disk.")

    # ── rows ─────────────────────────────────────────────────────────────────

    def _mark_dirty(self):
        self.confirm_exit = False

    def rebuild_rows(self):
        rows = [FormRow(ROW_QUESTION, index=i) for i in range(len(self.values.questions))]
        rows.append(FormRow(ROW_ADD, index=len(self.values.questions)))
        rows += [FormRow(ROW_BOOL, field=attr) for attr, _, _ in BOOL_OPTIONS]
        rows += [FormRow(ROW_INT, field=attr) for attr, _, _ in INT_OPTIONS]
        self.rows = rows
        self.selected = min(max(self.selected, 0), len(rows) - 1)

    def option_label(self, field):
        value = RESOLVERS[field](self.values)
        is_default = getattr(self.values, field) is None
        if field in MS_FIELDS:
            text = f"{value} ms"
        else:
            text = "true" if value else "false"
        return f"{LABELS[field]}: {text}{' (default)' if is_default else ''}"
