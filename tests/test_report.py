import logging
from datetime import timedelta
from io import StringIO

from conftest import DAY, entries
from daybook import report
from daybook.storage import Entry, Record

QUESTIONS = ["Q1", "Q2", "Q3"]


def save(storage, day, answers):
    storage.save_record(day, Record(date=day, answers=answers))


class TestPrompts:
    def test_answers_are_saved(self, storage):
        out = StringIO()
        inp = StringIO("first\n\n  third  \n")
        assert report.run_prompts(storage, QUESTIONS, inp, out, today=DAY,
                                  stamp=lambda: "T") == 0
        assert storage.load_record(DAY).answers == {"Q1": [Entry("T", "first")],
                                                    "Q3": [Entry("T", "third")]}
        assert out.getvalue().endswith("Entries saved.\n")
        assert "Q2\n> " in out.getvalue()

    def test_appends_to_existing_day(self, storage):
        save(storage, DAY, {"Q1": entries("a")})
        report.run_prompts(storage, ["Q1"], StringIO("b\n"), StringIO(), today=DAY,
                           stamp=lambda: "T")
        assert [e.response for e in storage.load_record(DAY).answers["Q1"]] == ["a", "b"]

    def test_logs_answer_count(self, storage, caplog):
        with caplog.at_level(logging.INFO, logger="daybook.report"):
            report.run_prompts(storage, QUESTIONS, StringIO("x\ny\n\n"), StringIO(), today=DAY)
        assert "Recorded 2 prompt answers for 2024-05-01" in caplog.text

    def test_nothing_entered(self, storage):
        out = StringIO()
        report.run_prompts(storage, QUESTIONS, StringIO(""), out, today=DAY)
        assert out.getvalue().endswith("No entries recorded today.\n")
        assert not storage.record_path(DAY).exists()

    def test_no_questions(self, storage):
        out = StringIO()
        report.run_prompts(storage, [], StringIO(), out, today=DAY)
        assert "No questions configured" in out.getvalue()


class TestView:
    def test_groups_by_question(self, storage):
        save(storage, DAY, {"Extra": entries("x"), "Q1": entries("a")})
        out = StringIO()
        report.run_view(storage, "", QUESTIONS, out, today=DAY)
        assert out.getvalue() == (
            "2024-05-01\n"
            "  Q1\n"
            "    - [09:00] a\n"
            "  Extra\n"
            "    - [09:00] x\n"
            "\n")

    def test_nothing_found(self, storage):
        out = StringIO()
        report.run_view(storage, "last week", QUESTIONS, out, today=DAY)
        assert out.getvalue() == "No entries found for last week.\n"


class TestCat:
    def test_today_prints_even_when_empty(self, storage):
        out = StringIO()
        report.run_cat(storage, "", ["Q1", "Q2"], out, today=DAY)
        assert out.getvalue() == "Wed 2024-05-01 — Today\n\n[0] Q1\n[1] Q2\n\n"

    def test_interval_skips_empty_days(self, storage):
        yesterday = DAY - timedelta(days=1)
        save(storage, yesterday, {"Q2": entries("b")})
        out = StringIO()
        report.run_cat(storage, "last 3 days", ["Q1", "Q2"], out, today=DAY)
        assert out.getvalue() == (
            "Tue 2024-04-30 — Yesterday\n\n[0] Q1\n[1] Q2 (1)\n    - [09:00] b\n\n")

    def test_nothing_found(self, storage):
        out = StringIO()
        report.run_cat(storage, "yesterday", ["Q1"], out, today=DAY)
        assert out.getvalue() == "No entries found for yesterday.\n"


class TestLs:
    def test_data_dir(self, storage):
        out = StringIO()
        report.run_ls(storage, [], out)
        assert out.getvalue() == f"{storage.data_dir}\n"
        assert storage.data_dir.is_dir()

    def test_config_path(self, storage):
        out = StringIO()
        report.run_ls(storage, ["config"], out)
        assert out.getvalue() == f"{storage.config_path()}\n"
        assert storage.config_path().exists()
