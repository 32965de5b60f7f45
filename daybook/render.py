"""
Pure projections of session data into rows and styled text lines.

Nothing here touches curses or the disk; the runtime maps each line's style to
terminal attributes.
"""

from collections import namedtuple
from dataclasses import dataclass
from datetime import timedelta

from .storage import display_time

INDEX_CHARS = "0123456789abcdefghijklmnopqrstuvwxyz"

QUESTION = "question"
ENTRY    = "entry"

Line = namedtuple("Line", "text style")


@dataclass(frozen=True)
class Row:
    kind: str
    question: str
    entry_index: int = -1
    label: str = ""
    count: int = 0


# ─── Rows ─────────────────────────────────────────────────────────────────────

def index_label(idx):
    return INDEX_CHARS[idx] if 0 <= idx < len(INDEX_CHARS) else "--"


def merge_questions(configured, record):
    """Configured questions first, then answered extras in sorted order."""
    seen = set(configured)
    ordered = list(dict.fromkeys(configured))
    extras = sorted(q for q, entries in record.answers.items() if entries and q not in seen)
    return ordered + extras


def build_rows(questions, record, list_mode):
    rows = []
    for i, question in enumerate(questions):
        entries = record.answers.get(question, [])
        rows.append(Row(QUESTION, question, label=index_label(i), count=len(entries)))
        if list_mode:
            rows.extend(Row(ENTRY, question, entry_index=j) for j in range(len(entries)))
    return rows


def row_index_for_question(questions, record, list_mode, idx):
    """Row position of question ``idx``'s header row, or -1."""
    if idx < 0 or idx >= len(questions):
        return -1
    if not list_mode:
        return idx
    offset = 0
    for question in questions[:idx]:
        offset += 1 + len(record.answers.get(question, []))
    return offset


# ─── Text ─────────────────────────────────────────────────────────────────────

def relative_day_label(day, today):
    if day == today:
        return "Today"
    if day == today - timedelta(days=1):
        return "Yesterday"
    if day == today + timedelta(days=1):
        return "Tomorrow"
    delta = (day - today).days
    if delta > 0:
        return f"In {delta} days"
    return f"{-delta} days ago"


def day_heading(day, today):
    return f"{day.strftime('%a %Y-%m-%d')} — {relative_day_label(day, today)}"


def entry_text(entry):
    return f"[{display_time(entry.time)}] {entry.response}"


def render_list(rows, selected, record, list_mode=False, show_hints=False):
    if not rows:
        return [Line("No questions configured.", "dim")]
    lines = []
    if list_mode and show_hints:
        lines += [Line("List mode: showing entries for all questions.", "hint"), Line("", "normal")]
    for i, row in enumerate(rows):
        marker = ">" if i == selected else " "
        style = "selected" if i == selected else "normal"
        if row.kind == QUESTION:
            count = f" ({row.count})" if row.count else ""
            lines.append(Line(f"{marker} [{row.label}] {row.question}{count}", style))
            continue
        entries = record.answers.get(row.question, [])
        if 0 <= row.entry_index < len(entries):
            lines.append(Line(f"{marker}     - {entry_text(entries[row.entry_index])}",
                              style if i == selected else "dim"))
    if show_hints:
        lines += [Line("", "normal"),
                  Line("Use numbers/letters to jump to a question. Enter on an entry opens "
                       "the editor. Press d to delete an entry.", "hint")]
    return lines


def render_detail(question, record, editing=False, buffer="", show_hints=False):
    lines = [Line(question, "title"), Line("", "normal")]
    entries = record.answers.get(question, [])
    if not entries:
        lines.append(Line("  No entries yet.", "dim"))
    for i, entry in enumerate(entries, 1):
        lines.append(Line(f"  {i}. {entry_text(entry)}", "normal"))
    lines.append(Line("", "normal"))
    if editing:
        lines += [Line("New entry:", "normal"), Line(f"  → {buffer}▌", "input")]
        if show_hints:
            lines.append(Line("  Enter to save and continue, Esc to cancel.", "hint"))
    elif show_hints:
        lines.append(Line("Press Enter or i to start adding entries, e to edit all entries, "
                          "Esc to go back.", "hint"))
    return lines


def render_session(session):
    """Full screen layout for an interactive :class:`~daybook.session.Session`."""
    lines = [Line(day_heading(session.day, session.today()), "title"), Line("", "normal")]
    if session.show_hints:
        lines += [
            Line("←/→ change day • space today • q quit • h/? toggle hints", "hint"),
            Line("Enter/i add entry • e edit • d delete entry • l toggle list • "
                 "o open day file • numbers/letters jump", "hint"),
            Line("", "normal"),
        ]
    if session.error is not None:
        lines += [Line(f"Error: {session.error}", "error"), Line("", "normal")]
    if session.view == "list":
        lines += render_list(session.rows, session.selected, session.record,
                             session.list_mode, session.show_hints)
    else:
        lines += render_detail(session.detail_question, session.record,
                               session.editing, session.input_buf, session.show_hints)
    if session.confirm_prompt:
        lines += [Line("", "normal"), Line(session.confirm_prompt, "prompt")]
    if session.status:
        lines += [Line("", "normal"), Line(session.status, "status")]
    return lines


def render_config_editor(editor):
    """Layout for :class:`~daybook.config_editor.ConfigEditor`."""
    from .config_editor import ROW_ADD, ROW_QUESTION

    title = "Configuration *" if editor.is_dirty() else "Configuration"
    lines = [Line(title, "title"), Line("", "normal")]
    if editor.error is not None:
        lines += [Line(f"Error: {editor.error}", "error"), Line("", "normal")]

    lines.append(Line("Questions:", "normal"))
    options = []
    for i, row in enumerate(editor.rows):
        marker = ">" if i == editor.selected else " "
        style = "selected" if i == editor.selected else "normal"
        if row.kind == ROW_QUESTION:
            label = editor.values.questions[row.index] or "(empty)"
            lines.append(Line(f"{marker}  [{row.index + 1}] {label}", style))
        elif row.kind == ROW_ADD:
            lines.append(Line(f"{marker}  [+] Add question", style))
        else:
            options.append(Line(f"{marker}  {editor.option_label(row.field)}", style))
    lines += [Line("", "normal"), Line("Options:", "normal")] + options

    lines += [Line("", "normal"),
              Line("Commands: Enter edit/toggle • d delete/default • w write • r reload • "
                   "e edit file • q quit", "hint")]
    if editor.editing:
        lines += [Line("", "normal"), Line(f"→ {editor.input_buf}▌", "input")]
    if editor.status:
        lines += [Line("", "normal"), Line(editor.status, "status")]
    return lines
