import pytest

from daybook import config as conf
from daybook.config import DEFAULT_QUESTIONS, Config


class TestResolvers:
    def test_defaults(self):
        cfg = Config()
        assert conf.hints_enabled(cfg)
        assert conf.auto_insert_enabled(cfg)
        assert conf.continue_after_save_enabled(cfg)
        assert not conf.list_mode_default(cfg)
        assert conf.auto_open_jump_enabled(cfg)
        assert conf.confirm_delete_enabled(cfg)
        assert conf.confirm_escape_enabled(cfg)
        assert conf.status_duration_ms(cfg) == 1000
        assert conf.escape_timeout_ms(cfg) == 1000

    def test_explicit_values_win(self):
        cfg = Config(show_hints=False, default_list_mode=True, status_ms=50)
        assert not conf.hints_enabled(cfg)
        assert conf.list_mode_default(cfg)
        assert conf.status_duration_ms(cfg) == 50

    @pytest.mark.parametrize("value", [0, -5])
    def test_non_positive_durations_use_default(self, value):
        assert conf.escape_timeout_ms(Config(escape_timeout_ms=value)) == 1000


class TestConfig:
    def test_from_dict(self):
        cfg = Config.from_dict({"questions": ["A", "B"], "confirmDelete": False,
                                "statusMessageDurationMs": 200, "theme": "dark"})
        assert cfg.questions == ["A", "B"]
        assert cfg.confirm_delete is False
        assert cfg.status_ms == 200
        assert cfg.show_hints is None

    def test_from_dict_ignores_wrong_types(self):
        cfg = Config.from_dict({"questions": ["A"], "showHints": "yes",
                                "statusMessageDurationMs": True})
        assert cfg.show_hints is None
        assert cfg.status_ms is None

    def test_from_dict_rejects_bad_questions(self):
        with pytest.raises(ValueError):
            Config.from_dict({"questions": "A"})

    def test_to_dict_omits_unset(self):
        assert Config(questions=["A"], show_hints=True).to_dict() == {
            "questions": ["A"], "showHints": True}

    def test_normalized(self):
        cfg = Config(status_ms=-1, escape_timeout_ms=10).normalized()
        assert cfg.questions == DEFAULT_QUESTIONS
        assert cfg.status_ms is None
        assert cfg.escape_timeout_ms == 10

    def test_copy_is_independent(self):
        cfg = Config(questions=["A"])
        clone = cfg.copy()
        clone.questions.append("B")
        assert cfg.questions == ["A"]
