"""
curses runtime for the journal and config screens.

Owns the terminal: decodes keys, draws the model's rendered lines, schedules
timers, and hands the terminal to the editor when a model asks for one. The
models themselves never see curses.
"""

import curses
import heapq
import itertools
import logging
import time
from datetime import datetime

from .config_editor import ConfigEditor
from .editor import edit_lines, open_in_editor, run_editor
from .render import render_config_editor, render_session
from .session import EditEntries, KeyPress, OpenFile, Quit, Session, StartTimer, TimerFired

logger = logging.getLogger(__name__)

ESC_DELAY_MS = 25
PAD          = 2

SPECIAL_KEYS = {
    curses.KEY_UP:        "up",
    curses.KEY_DOWN:      "down",
    curses.KEY_LEFT:      "left",
    curses.KEY_RIGHT:     "right",
    curses.KEY_ENTER:     "enter",
    curses.KEY_BACKSPACE: "backspace",
    curses.KEY_DC:        "delete",
    curses.KEY_RESIZE:    "resize",
}

CHAR_KEYS = {
    "\n":   "enter",
    "\r":   "enter",
    "\x1b": "esc",
    "\x7f": "backspace",
    "\x08": "backspace",
    "\t":   "tab",
}


def key_name(ch):
    """Translate a ``get_wch`` result into the key names the models expect."""
    if isinstance(ch, int):
        return SPECIAL_KEYS.get(ch, "")
    if ch in CHAR_KEYS:
        return CHAR_KEYS[ch]
    if len(ch) == 1 and ord(ch) < 32:
        return "ctrl+" + chr(ord(ch) + 96)
    return ch


# ─── Drawing helpers ──────────────────────────────────────────────────────────

def safestr(scr, y, x, text, attr=0):
    h, w = scr.getmaxyx()
    if y < 0 or y >= h - 1 or x < 0 or x >= w - 1:
        return
    room = w - x - 1
    if room <= 0:
        return
    try:
        if attr:
            scr.attron(attr)
        scr.addstr(y, x, str(text)[:room])
        if attr:
            scr.attroff(attr)
    except curses.error:
        pass

def hline(scr, y, w, char="─"):
    safestr(scr, y, 0, char * (w - 1))

def box(scr, y, x, bh, bw, attr=curses.A_REVERSE):
    for r in range(bh):
        safestr(scr, y + r, x, " " * bw, attr)


def visible_window(lines, height):
    """Slice of ``lines`` that fits ``height`` rows and keeps the selection on screen."""
    if len(lines) <= height:
        return lines
    sel = next((i for i, line in enumerate(lines) if line.style == "selected"), 0)
    start = min(max(0, sel - height // 2), len(lines) - height)
    return lines[start:start + height]


# ─── Runtime ──────────────────────────────────────────────────────────────────

class Runtime:
    def __init__(self, stdscr, model, render, title):
        self.scr    = stdscr
        self.model  = model
        self.render = render
        self.title  = f"  {title}  "
        self._timers  = []
        self._counter = itertools.count()

        curses.curs_set(0)
        curses.raw()
        self.scr.keypad(True)
        try:
            curses.set_escdelay(ESC_DELAY_MS)
        except AttributeError:
            logger.debug("curses.set_escdelay unavailable")
        curses.start_color()
        curses.use_default_colors()
        curses.init_pair(1, curses.COLOR_BLACK, curses.COLOR_WHITE)  # selected
        curses.init_pair(2, curses.COLOR_RED, -1)                    # errors

        self.styles = {
            "title":    curses.A_BOLD,
            "hint":     curses.A_DIM,
            "dim":      curses.A_DIM,
            "error":    curses.color_pair(2) | curses.A_BOLD,
            "selected": curses.color_pair(1) | curses.A_BOLD,
            "prompt":   curses.A_REVERSE | curses.A_BOLD,
            "status":   curses.A_DIM | curses.A_BOLD,
            "input":    curses.A_BOLD,
            "normal":   0,
        }

    # ── main loop ─────────────────────────────────────────────────────────────

    def run(self):
        while True:
            try:
                self.draw()
                self.scr.timeout(self._next_timeout())
                key = self._read_key()
                if key is None:
                    if self._fire_due_timers():
                        return
                    continue
                if key in ("", "resize"):
                    continue
                if self.dispatch(KeyPress(key)):
                    return
                if self._fire_due_timers():
                    return
            except KeyboardInterrupt:
                return

    def _read_key(self):
        try:
            return key_name(self.scr.get_wch())
        except curses.error:
            return None

    def dispatch(self, msg):
        """Feed ``msg`` to the model and run its commands. True means quit."""
        for command in self.model.update(msg):
            if isinstance(command, Quit):
                return True
            if isinstance(command, StartTimer):
                deadline = time.monotonic() + command.delay_ms / 1000.0
                heapq.heappush(self._timers, (deadline, next(self._counter),
                                              TimerFired(command.kind, command.seq)))
            elif isinstance(command, EditEntries):
                result = edit_lines(command.question, command.lines, command.entry_index,
                                    runner=self._run_suspended)
                if self.dispatch(result):
                    return True
            elif isinstance(command, OpenFile):
                result = open_in_editor(command.path, command.kind, runner=self._run_suspended)
                if self.dispatch(result):
                    return True
        return False

    # ── timers ────────────────────────────────────────────────────────────────

    def _next_timeout(self):
        if not self._timers:
            return -1
        remaining = self._timers[0][0] - time.monotonic()
        return max(0, int(remaining * 1000) + 1)

    def _fire_due_timers(self):
        now = time.monotonic()
        while self._timers and self._timers[0][0] <= now:
            _, _, fired = heapq.heappop(self._timers)
            if self.dispatch(fired):
                return True
        return False

    # ── editor hand-off ───────────────────────────────────────────────────────

    def _run_suspended(self, argv):
        curses.def_prog_mode()
        curses.endwin()
        try:
            run_editor(argv)
        finally:
            curses.reset_prog_mode()
            curses.curs_set(0)
            self.scr.clear()
            self.scr.refresh()

    # ── draw ──────────────────────────────────────────────────────────────────

    def draw(self):
        self.scr.erase()
        h, w = self.scr.getmaxyx()
        self._draw_topbar(w)
        lines = visible_window(self.render(self.model), max(1, h - 4))
        for i, line in enumerate(lines):
            safestr(self.scr, 2 + i, PAD, line.text, self.styles.get(line.style, 0))
        prompt = getattr(self.model, "confirm_prompt", "")
        if prompt:
            self._prompt(h, w, "  DELETE ENTRY  ", f"  {prompt}  ")
        self.scr.refresh()

    def _draw_topbar(self, w):
        safestr(self.scr, 0, 0, " " * (w - 1), curses.A_REVERSE)
        safestr(self.scr, 0, 3, self.title, curses.A_REVERSE | curses.A_BOLD)
        dt = f"  {datetime.now().strftime('%a  %d %b  %H:%M')}  "
        safestr(self.scr, 0, w - len(dt) - 1, dt, curses.A_REVERSE | curses.A_DIM)
        hline(self.scr, 1, w)

    def _prompt(self, h, w, title, body):
        bw  = max(len(body) + 10, len(title) + 10, 40)
        bh  = 7
        y   = (h - bh) // 2
        x   = max(0, (w - bw) // 2)
        box(self.scr, y, x, bh, bw)
        safestr(self.scr, y + 1, x + max(0, (bw - len(title)) // 2), title,
                curses.A_REVERSE | curses.A_BOLD)
        safestr(self.scr, y + 2, x + 2, "─" * (bw - 4), curses.A_REVERSE)
        safestr(self.scr, y + 3, x + 4, body[:bw - 6], curses.A_REVERSE)
        safestr(self.scr, y + 5, x + 4, "  Y  delete      N / ESC  cancel  ",
                curses.A_REVERSE | curses.A_DIM)


# ─── Entry points ─────────────────────────────────────────────────────────────

def run_session(cfg, storage):
    session = Session(cfg, storage)
    curses.wrapper(lambda scr: Runtime(scr, session, render_session, "DAYBOOK").run())


def run_config_editor(cfg, storage):
    editor = ConfigEditor(cfg, storage)
    curses.wrapper(lambda scr: Runtime(scr, editor, render_config_editor, "DAYBOOK CONFIG").run())
