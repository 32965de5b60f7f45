"""
Interactive session model.

A :class:`Session` owns everything the journal screen shows. The runtime feeds
it one message at a time through :meth:`Session.update` (key presses, fired
timers, editor results) and executes the commands it returns (quit, arm a
timer, launch the editor). Every completed mutation is saved right away.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from pathlib import Path

from . import config as conf
from .editor import WHOLE_QUESTION, EditorResult, FileOpened, rebuild_entries
from .render import ENTRY, INDEX_CHARS, build_rows, merge_questions, row_index_for_question
from .storage import Entry, StorageError, now_stamp

logger = logging.getLogger(__name__)

# at this many questions j/k become jump targets instead of navigation
JK_JUMP_THRESHOLD = 20

LIST   = "list"
DETAIL = "detail"

TIMER_STATUS = "status"
TIMER_ESCAPE = "escape"

OPEN_DAY    = "day"
OPEN_CONFIG = "config"

DELETE_PROMPT = "Delete this entry? (y/n)"


# ─── Messages ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class KeyPress:
    key: str


@dataclass(frozen=True)
class TimerFired:
    kind: str
    seq: int


# ─── Commands ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class StartTimer:
    kind: str
    seq: int
    delay_ms: int


@dataclass(frozen=True)
class EditEntries:
    question: str
    lines: tuple
    entry_index: int = WHOLE_QUESTION


@dataclass(frozen=True)
class OpenFile:
    path: Path
    kind: str


# ─── Session ──────────────────────────────────────────────────────────────────

class Session:
    def __init__(self, cfg, storage, today=date.today, stamp=now_stamp):
        self.config  = cfg.normalized()
        self.storage = storage
        self.today   = today
        self._stamp  = stamp

        self.day    = today()
        self.record = storage.load_record(self.day)

        self.show_hints          = conf.hints_enabled(self.config)
        self.auto_insert         = conf.auto_insert_enabled(self.config)
        self.continue_after_save = conf.continue_after_save_enabled(self.config)
        self.list_mode           = conf.list_mode_default(self.config)
        self.auto_open_jump      = conf.auto_open_jump_enabled(self.config)
        self.confirm_delete      = conf.confirm_delete_enabled(self.config)
        self.confirm_escape      = conf.confirm_escape_enabled(self.config)
        self.status_ms           = conf.status_duration_ms(self.config)
        self.escape_timeout_ms   = conf.escape_timeout_ms(self.config)

        self.view            = LIST
        self.detail_question = ""
        self.editing         = False
        self.input_buf       = ""
        self.pending_delete  = None   # (question, entry index)
        self.escape_armed    = False
        self.escape_seq      = 0

        self.status     = ""
        self.status_seq = 0
        self.error      = None

        self.questions      = []
        self.question_index = {}
        self.rows           = []
        self.selected       = 0
        self.jk_jumps       = False

        self._commands = []
        self.refresh_questions()

    @property
    def confirm_prompt(self):
        return DELETE_PROMPT if self.pending_delete is not None else ""

    # ── transition ───────────────────────────────────────────────────────────

    def update(self, msg):
        """Apply one message and return the commands it produced."""
        if isinstance(msg, KeyPress):
            self._handle_key(msg.key)
        elif isinstance(msg, TimerFired):
            self._handle_timer(msg)
        elif isinstance(msg, EditorResult):
            self._handle_editor_result(msg)
        elif isinstance(msg, FileOpened):
            self._handle_file_opened(msg)
        commands, self._commands = self._commands, []
        return commands

    def _emit(self, command):
        self._commands.append(command)

    def _handle_timer(self, msg):
        if msg.kind == TIMER_STATUS and msg.seq == self.status_seq:
            self.status = ""
        elif msg.kind == TIMER_ESCAPE and msg.seq == self.escape_seq:
            self.escape_armed = False

    def set_status(self, text):
        self.status = text
        self.status_seq += 1
        if text and self.status_ms > 0:
            self._emit(StartTimer(TIMER_STATUS, self.status_seq, self.status_ms))

    # ── keys ─────────────────────────────────────────────────────────────────

    def _handle_key(self, key):
        if self.view == DETAIL and self.editing:
            if key == "ctrl+c":
                self._emit(Quit())
            else:
                self._h_input(key)
            return

        if key in ("ctrl+c", "q"):
            self._emit(Quit())
            return
        if self.view == LIST and self.pending_delete is not None:
            self._h_delete_confirm(key)
            return

        if key in ("h", "?"):
            self.toggle_hints()
        elif key == "esc" and self.view == LIST and not self.show_hints:
            self.show_hints = True
            self.set_status("Hints temporarily shown.")
        elif key == "left":
            self.change_day(-1)
        elif key == "right":
            self.change_day(1)
        elif key == " ":
            self.go_to_today()
        elif self.view == LIST:
            self._h_list(key)
        else:
            self._h_detail(key)

    def _h_list(self, key):
        row = self.current_row()
        if key == "up":
            self.move_selection(-1)
        elif key == "down":
            self.move_selection(1)
        elif key in ("j", "k"):
            if self.jk_jumps:
                self.jump_to_index(key)
            else:
                self.move_selection(1 if key == "j" else -1)
        elif key == "enter":
            self.activate_selection()
        elif key == "i":
            if row is not None:
                self.open_detail(row.question, True)
        elif key == "e":
            if row is not None and row.kind == ENTRY:
                self.open_entry_editor(row.question, row.entry_index)
            elif row is not None:
                self.open_question_editor(row.question)
        elif key == "d":
            self.request_delete()
        elif key == "l":
            self.toggle_list_mode()
        elif key == "o":
            self.open_day_file()
        elif len(key) == 1:
            ch = key.lower()
            if ch in ("j", "k") and not self.jk_jumps:
                return
            if self.jump_to_index(ch) and self.auto_open_jump:
                self.activate_selection()

    def _h_detail(self, key):
        if key in ("esc", "-"):
            self.close_detail()
        elif key in ("enter", "i"):
            self.start_editing()
        elif key == "e":
            self.open_question_editor(self.detail_question)

    def _h_input(self, key):
        if key == "esc":
            self._escape_input()
            return
        self.escape_armed = False
        if key == "enter":
            self.save_inline_entry()
        elif key == "backspace":
            self.input_buf = self.input_buf[:-1]
        elif key == "ctrl+u":
            self.input_buf = ""
        elif len(key) == 1 and key.isprintable():
            self.input_buf += key

    def _escape_input(self):
        if self.input_buf.strip() and self.confirm_escape and not self.escape_armed:
            self.escape_armed = True
            self.escape_seq += 1
            self._emit(StartTimer(TIMER_ESCAPE, self.escape_seq, self.escape_timeout_ms))
            self.set_status("Press Esc again to discard.")
            return
        self.escape_armed = False
        self.stop_editing()
        self.set_status("Insert canceled.")

    # ── selection ────────────────────────────────────────────────────────────

    def current_row(self):
        if 0 <= self.selected < len(self.rows):
            return self.rows[self.selected]
        return None

    def move_selection(self, delta):
        if not self.rows:
            self.selected = 0
            return
        self.selected = min(max(self.selected + delta, 0), len(self.rows) - 1)

    def jump_to_index(self, ch):
        idx = INDEX_CHARS.find(ch) if len(ch) == 1 else -1
        if idx < 0 or idx >= len(self.questions):
            return False
        row_idx = row_index_for_question(self.questions, self.record, self.list_mode, idx)
        if row_idx < 0:
            return False
        self.selected = row_idx
        return True

    def select_question(self, question):
        idx = self.question_index.get(question)
        if idx is None:
            return False
        self.selected = row_index_for_question(self.questions, self.record, self.list_mode, idx)
        return True

    def activate_selection(self):
        row = self.current_row()
        if row is None:
            return
        if row.kind == ENTRY:
            self.open_entry_editor(row.question, row.entry_index)
        else:
            self.open_detail(row.question, self.auto_insert)

    def toggle_list_mode(self):
        row = self.current_row()
        self.list_mode = not self.list_mode
        self.refresh_questions()
        if row is None or not self.select_question(row.question):
            self.selected = 0

    def toggle_hints(self):
        self.show_hints = not self.show_hints
        self.config.show_hints = self.show_hints
        try:
            self.storage.save_config(self.config)
        except StorageError as ex:
            self._fail(ex, "Failed to save hint preference.")
            return
        self.error = None
        self.set_status("Hints enabled." if self.show_hints else "Hints hidden.")

    # ── detail / inline add ──────────────────────────────────────────────────

    def open_detail(self, question, start_editing):
        self.view = DETAIL
        self.pending_delete = None
        self.detail_question = question
        if start_editing:
            self.start_editing()
        else:
            self.stop_editing()

    def close_detail(self):
        self.view = LIST
        self.detail_question = ""
        self.stop_editing()

    def start_editing(self):
        self.editing = True
        self.input_buf = ""
        self.escape_armed = False
        self.set_status("Adding entries...")

    def stop_editing(self):
        self.editing = False
        self.input_buf = ""
        self.escape_armed = False

    def save_inline_entry(self):
        text = self.input_buf.strip()
        self.input_buf = ""
        if not text:
            self.set_status("Entry discarded (empty).")
            return
        question = self.detail_question
        self.record.answers.setdefault(question, []).append(Entry(time=self._stamp(), response=text))
        if not self.continue_after_save:
            self.editing = False
        self.refresh_questions()
        self._persist("Entry saved.", "Failed to save entry.")

    # ── delete ───────────────────────────────────────────────────────────────

    def request_delete(self):
        if not self.list_mode:
            self.set_status("Enable list mode to delete entries.")
            return
        row = self.current_row()
        if row is None or row.kind != ENTRY:
            self.set_status("Select an entry to delete.")
            return
        if not 0 <= row.entry_index < len(self.record.answers.get(row.question, [])):
            self.set_status("Entry not found.")
            return
        if self.confirm_delete:
            self.pending_delete = (row.question, row.entry_index)
            return
        self.perform_delete(row.question, row.entry_index)

    def _h_delete_confirm(self, key):
        if key in ("y", "Y"):
            question, idx = self.pending_delete
            self.pending_delete = None
            self.perform_delete(question, idx)
        elif key in ("n", "N", "esc"):
            self.pending_delete = None
            self.set_status("Delete canceled.")
        else:
            self.set_status("Confirm delete with y or n.")

    def perform_delete(self, question, idx):
        entries = self.record.answers.get(question, [])
        if not 0 <= idx < len(entries):
            self.set_status("Entry not found.")
            return
        del entries[idx]
        if not entries:
            del self.record.answers[question]
        self.refresh_questions()
        self.select_question(question)
        self._persist("Entry deleted.", "Failed to delete entry.")

    # ── external editor ──────────────────────────────────────────────────────

    def open_question_editor(self, question):
        lines = tuple(e.response for e in self.record.answers.get(question, []))
        self._emit(EditEntries(question, lines, WHOLE_QUESTION))

    def open_entry_editor(self, question, idx):
        entries = self.record.answers.get(question, [])
        if 0 <= idx < len(entries):
            self._emit(EditEntries(question, (entries[idx].response,), idx))

    def open_day_file(self):
        try:
            self.storage.save_record(self.day, self.record)
        except StorageError as ex:
            self._fail(ex, "Failed to save day file.")
            return
        self.error = None
        self.set_status("Opened day file in editor.")
        self._emit(OpenFile(self.storage.record_path(self.day), OPEN_DAY))

    def _handle_editor_result(self, msg):
        if msg.error is not None:
            self._fail(msg.error, "Editor failed.")
            return
        if not msg.changed:
            self.set_status("No changes saved.")
            return
        if msg.entry_index >= 0:
            self._apply_entry_edit(msg.question, msg.entry_index, msg.responses)
        else:
            self._apply_question_edit(msg.question, msg.responses)

    def _apply_entry_edit(self, question, idx, responses):
        entries = self.record.answers.get(question, [])
        if not 0 <= idx < len(entries):
            self.set_status("Entry not found.")
            return
        if responses:
            entries[idx].response = responses[0]
        else:
            del entries[idx]
        if not entries:
            self.record.answers.pop(question, None)
        self.refresh_questions()
        self._persist("Entry updated.", "Failed to save entry.")

    def _apply_question_edit(self, question, responses):
        updated = rebuild_entries(self.record.answers.get(question, []), responses, self._stamp)
        if updated:
            self.record.answers[question] = updated
        else:
            self.record.answers.pop(question, None)
        self.refresh_questions()
        self._persist("Entries updated.", "Failed to save entries.")

    def _handle_file_opened(self, msg):
        if msg.error is not None:
            self._fail(msg.error, "Editor failed.")
            return
        if msg.kind != OPEN_DAY:
            return
        try:
            self.record = self.storage.load_record(self.day)
        except StorageError as ex:
            self._fail(ex, "Failed to reload day file.")
            return
        self.error = None
        self.refresh_questions()
        self.set_status("Day file reloaded.")

    # ── days ─────────────────────────────────────────────────────────────────

    def change_day(self, delta):
        self._switch_day(self.day + timedelta(days=delta))

    def go_to_today(self):
        today = self.today()
        if today != self.day:
            self._switch_day(today)

    def _switch_day(self, day):
        try:
            record = self.storage.load_record(day)
        except StorageError as ex:
            self._fail(ex, f"Failed to load {day:%Y-%m-%d}.")
            return
        self.error = None
        self.day = day
        self.record = record
        self.view = LIST
        self.detail_question = ""
        self.stop_editing()
        self.selected = 0
        self.refresh_questions()
        self.set_status(f"Viewing {day:%Y-%m-%d}")

    # ── bookkeeping ──────────────────────────────────────────────────────────

    def refresh_questions(self):
        self.pending_delete = None
        self.questions = merge_questions(self.config.questions, self.record)
        self.question_index = {q: i for i, q in enumerate(self.questions)}
        self.jk_jumps = len(self.questions) >= JK_JUMP_THRESHOLD
        self.rows = build_rows(self.questions, self.record, self.list_mode)
        if not self.rows:
            self.selected = 0
        elif self.selected >= len(self.rows):
            self.selected = len(self.rows) - 1

    def _persist(self, ok_message, fail_message):
        try:
            self.storage.save_record(self.day, self.record)
        except StorageError as ex:
            self._fail(ex, fail_message)
            return False
        self.error = None
        self.set_status(ok_message)
        return True

    def _fail(self, error, message):
        logger.warning("%s %s", message, error)
        self.error = error
        self.set_status(message)
