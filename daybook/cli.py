"""
daybook — daily questions, dated answers, and a terminal journal browser.

Run: daybook [command]
"""

import argparse
import logging
import sys

from . import __version__
from .config import DEFAULT_QUESTIONS, Config
from .interval import IntervalError
from .storage import Storage, StorageError

logger = logging.getLogger(__name__)

LOG_NAME   = "daybook.log"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

EPILOG = """\
commands:
  (none)            open the interactive journal for today
  prompt            answer today's questions line by line
  view [interval]   show entries for an interval
  cat [interval]    print entries in list-view format
  ls [config]       print the storage directory (or config file) path
  config            edit the configuration interactively

intervals: today, yesterday, this week, last week, this year, "last N days"
"""


# handlers installed by setup_logging, replaced on each call
_handlers = []


def setup_logging(storage, verbose=False, interactive=False):
    """Log to a file in the data dir; the terminal belongs to curses."""
    level = logging.DEBUG if verbose else logging.WARNING
    root = logging.getLogger()
    root.setLevel(level)
    while _handlers:
        old = _handlers.pop()
        root.removeHandler(old)
        old.close()
    try:
        storage.data_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(storage.data_dir / LOG_NAME, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        _handlers.append(handler)
    except OSError as ex:
        sys.stderr.write(f"daybook: cannot open log file: {ex}\n")
    if not interactive:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        console.setLevel(level)
        _handlers.append(console)
    for h in _handlers:
        root.addHandler(h)


def _build_parser():
    parser = argparse.ArgumentParser(
        prog="daybook",
        description="Daily journal: configurable questions, dated answers.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("command", nargs="?", default="",
                        choices=["", "prompt", "view", "cat", "ls", "config"],
                        metavar="command")
    parser.add_argument("args", nargs="*", help="interval words or 'config' for ls")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--version", action="version", version=f"daybook {__version__}")
    return parser


def _load_config(storage):
    try:
        return storage.load_config()
    except StorageError as ex:
        sys.stderr.write(f"using default questions: {ex}\n")
        return Config(questions=list(DEFAULT_QUESTIONS))


def main(argv=None):
    args = _build_parser().parse_args(argv)
    storage = Storage()
    interactive = args.command in ("", "config")
    setup_logging(storage, args.verbose, interactive)

    cfg = _load_config(storage)
    interval = " ".join(args.args)
    try:
        if args.command == "":
            from .tui import run_session
            run_session(cfg, storage)
        elif args.command == "config":
            from .tui import run_config_editor
            run_config_editor(cfg, storage)
        else:
            from . import report
            if args.command == "prompt":
                return report.run_prompts(storage, cfg.questions)
            if args.command == "view":
                return report.run_view(storage, interval, cfg.questions)
            if args.command == "cat":
                return report.run_cat(storage, interval, cfg.questions)
            if args.command == "ls":
                return report.run_ls(storage, args.args)
    except (StorageError, IntervalError, OSError) as ex:
        logger.debug("Command %r failed", args.command, exc_info=True)
        sys.stderr.write(f"daybook: {ex}\n")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
