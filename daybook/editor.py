"""
External editor integration.

The interactive session never runs the editor itself: it returns an edit
request and later receives an :class:`EditorResult` (or :class:`FileOpened`)
carrying the question / entry the edit belongs to.
"""

import logging
import os
import shlex
import shutil
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .storage import DATA_ENCODING, Entry, now_stamp

logger = logging.getLogger(__name__)

DEFAULT_EDITOR = "vim"
SCRATCH_PREFIX = "daybook-edit-"
SCRATCH_SUFFIX = ".txt"

WHOLE_QUESTION = -1


class EditorLaunchError(Exception):
    """The configured editor could not be found or did not exit cleanly."""


@dataclass(frozen=True)
class EditorResult:
    question: str
    entry_index: int
    responses: tuple = ()
    changed: bool = False
    error: Optional[Exception] = field(default=None, compare=False)


@dataclass(frozen=True)
class FileOpened:
    kind: str
    error: Optional[Exception] = field(default=None, compare=False)


# ─── Command resolution ───────────────────────────────────────────────────────

def resolve_editor_command(path, environ=None, which=shutil.which):
    """Build the argv for editing ``path`` from $VISUAL, $EDITOR or vim."""
    environ = os.environ if environ is None else environ
    editor = environ.get("VISUAL") or environ.get("EDITOR") or DEFAULT_EDITOR
    try:
        parts = shlex.split(editor)
    except ValueError:
        parts = editor.split()
    if not parts:
        parts = [DEFAULT_EDITOR]
    if which(parts[0]) is None:
        raise EditorLaunchError(f"unable to launch editor {parts[0]!r}: not found in PATH")
    return parts + [str(path)]


def run_editor(argv):
    """Run the editor attached to the current terminal and wait for it."""
    logger.debug("Running editor: %s", argv)
    try:
        subprocess.run(argv, check=True)
    except subprocess.CalledProcessError as ex:
        raise EditorLaunchError(f"editor exited with status {ex.returncode}") from ex
    except OSError as ex:
        raise EditorLaunchError(f"unable to launch editor {argv[0]!r}: {ex}") from ex


# ─── Content helpers ──────────────────────────────────────────────────────────

def normalize_content(value):
    return value.replace("\r\n", "\n").rstrip("\n")


def parse_lines(content):
    return [line.strip() for line in content.split("\n") if line.strip()]


def rebuild_entries(existing, responses, stamp=now_stamp):
    """Reconcile edited lines with the entries they came from.

    Each line reuses the earliest unused timestamp of an original entry with
    the same text; anything new or retyped gets a fresh timestamp.
    """
    pool = {}
    for entry in existing:
        pool.setdefault(entry.response, []).append(entry.time)
    result = []
    for response in responses:
        response = response.strip()
        if not response:
            continue
        times = pool.get(response)
        if times:
            result.append(Entry(time=times.pop(0), response=response))
        else:
            result.append(Entry(time=stamp(), response=response))
    return result


# ─── Launch ───────────────────────────────────────────────────────────────────

def edit_lines(question, lines, entry_index=WHOLE_QUESTION, runner=run_editor, environ=None):
    """Open ``lines`` in the editor and describe what changed.

    ``entry_index`` is the continuation key: ``WHOLE_QUESTION`` for a
    whole-question edit, otherwise the position of the single entry.
    """
    original = "\n".join(lines)
    try:
        fd, name = tempfile.mkstemp(prefix=SCRATCH_PREFIX, suffix=SCRATCH_SUFFIX)
    except OSError as ex:
        return EditorResult(question, entry_index, error=ex)
    path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding=DATA_ENCODING) as f:
            if original:
                f.write(original + "\n")
        runner(resolve_editor_command(path, environ))
        content = path.read_text(encoding=DATA_ENCODING)
    except (EditorLaunchError, OSError) as ex:
        logger.warning("Editing %r failed: %s", question, ex)
        return EditorResult(question, entry_index, error=ex)
    finally:
        try:
            path.unlink()
        except OSError:
            logger.debug("Scratch file %s already gone", path)

    new_content = normalize_content(content)
    if new_content == normalize_content(original):
        return EditorResult(question, entry_index, responses=tuple(lines), changed=False)
    if entry_index >= 0:
        trimmed = new_content.strip()
        return EditorResult(question, entry_index,
                            responses=(trimmed,) if trimmed else (), changed=True)
    return EditorResult(question, entry_index, responses=tuple(parse_lines(new_content)), changed=True)


def open_in_editor(path, kind, runner=run_editor, environ=None):
    """Open a real file (day record or config) and report how it went."""
    try:
        runner(resolve_editor_command(path, environ))
    except EditorLaunchError as ex:
        logger.warning("Opening %s failed: %s", path, ex)
        return FileOpened(kind, error=ex)
    return FileOpened(kind)
