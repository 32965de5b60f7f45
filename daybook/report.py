"""
Non-interactive commands: line prompts, ``view``, ``cat`` and ``ls``.
"""

import logging
import sys
from datetime import date

from .interval import days_between, parse_interval
from .render import ENTRY, build_rows, day_heading, entry_text, merge_questions
from .storage import Entry, now_stamp

logger = logging.getLogger(__name__)


def _interval_label(raw):
    return (raw or "").strip() or "today"


def order_questions(answers, base):
    """Configured questions that have answers, then the rest sorted."""
    ordered = [q for q in dict.fromkeys(base) if q in answers]
    extras = sorted(q for q in answers if q not in ordered)
    return ordered + extras


# ─── Prompts ──────────────────────────────────────────────────────────────────

def run_prompts(storage, questions, inp=None, out=None, today=None, stamp=now_stamp):
    inp = inp or sys.stdin
    out = out or sys.stdout
    if not questions:
        out.write("No questions configured. Update your config file to add some.\n")
        return 0

    day = today or date.today()
    record = storage.load_record(day)
    out.write("Answer the following questions. Press Enter to skip any question.\n")
    added = 0
    for question in questions:
        out.write(f"{question}\n> ")
        out.flush()
        response = inp.readline().strip()
        if not response:
            continue
        record.answers.setdefault(question, []).append(Entry(time=stamp(), response=response))
        added += 1

    if not added:
        out.write("No entries recorded today.\n")
        return 0
    storage.save_record(day, record)
    logger.info("Recorded %d prompt answers for %s", added, day)
    out.write("Entries saved.\n")
    return 0


# ─── Reports ──────────────────────────────────────────────────────────────────

def run_view(storage, interval, questions, out=None, today=None):
    """Print every stored day in ``interval`` grouped by question."""
    out = out or sys.stdout
    start, end = parse_interval(interval, today)
    records = [r for r in (storage.read_record_if_exists(d) for d in days_between(start, end))
               if r is not None]
    if not records:
        out.write(f"No entries found for {_interval_label(interval)}.\n")
        return 0

    for record in records:
        out.write(f"{record.date:%Y-%m-%d}\n")
        for question in order_questions(record.answers, questions):
            entries = record.answers[question]
            if not entries:
                continue
            out.write(f"  {question}\n")
            for entry in entries:
                out.write(f"    - {entry_text(entry)}\n")
        out.write("\n")
    return 0


def render_listing(record, questions, today):
    """Plain-text list view of one day, as the interactive list mode shows it."""
    lines = [day_heading(record.date, today), ""]
    ordered = merge_questions(questions, record)
    if not ordered:
        return "\n".join(lines + ["No questions configured.", "", ""])
    for row in build_rows(ordered, record, list_mode=True):
        if row.kind == ENTRY:
            entry = record.answers[row.question][row.entry_index]
            lines.append(f"    - {entry_text(entry)}")
        else:
            count = f" ({row.count})" if row.count else ""
            lines.append(f"[{row.label}] {row.question}{count}")
    return "\n".join(lines + ["", ""])


def run_cat(storage, interval, questions, out=None, today=None):
    out = out or sys.stdout
    today = today or date.today()
    start, end = parse_interval(interval, today)
    single_day = start == end and (interval or "").strip().lower() in ("", "today")
    printed = False
    for day in days_between(start, end):
        record = storage.load_record(day)
        if not single_day and not record.has_entries():
            continue
        out.write(render_listing(record, questions, today))
        printed = True
    if not printed:
        out.write(f"No entries found for {_interval_label(interval)}.\n")
    return 0


def run_ls(storage, args, out=None):
    out = out or sys.stdout
    if args and args[0] == "config":
        # load_config creates the file on first use
        storage.load_config()
        out.write(f"{storage.config_path()}\n")
        return 0
    storage.data_dir.mkdir(parents=True, exist_ok=True)
    out.write(f"{storage.data_dir}\n")
    return 0
