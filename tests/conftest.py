from datetime import date

import pytest

from daybook.config import Config
from daybook.session import KeyPress, Session
from daybook.storage import Entry, Record, Storage

DAY = date(2024, 5, 1)


class Stamps:
    """Deterministic, strictly increasing timestamps."""

    def __init__(self):
        self.n = 0

    def __call__(self):
        self.n += 1
        return f"2024-05-01T10:{self.n:02d}:00+00:00"


def entries(*responses, hour=9):
    return [Entry(time=f"2024-05-01T{hour:02d}:{i:02d}:00+00:00", response=r)
            for i, r in enumerate(responses)]


def press(model, *keys):
    commands = []
    for key in keys:
        commands += model.update(KeyPress(key))
    return commands


def type_text(model, text):
    return press(model, *list(text))


@pytest.fixture
def storage(tmp_path):
    return Storage(data_dir=tmp_path / "data", config_dir=tmp_path / "config")


@pytest.fixture
def stamps():
    return Stamps()


@pytest.fixture
def make_session(storage, stamps):
    def make(questions=("Q1", "Q2"), answers=None, today=DAY, **options):
        if answers:
            storage.save_record(today, Record(date=today, answers=answers))
        cfg = Config(questions=list(questions), **options)
        return Session(cfg, storage, today=lambda: today, stamp=stamps)
    return make
