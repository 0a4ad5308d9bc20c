"""Tests for the terminal prompter's non-curses paths."""

import sys

import pytest

mod = sys.modules["the_agency"]

OPTIONS = [("a", "Alpha"), ("b", "Beta"), ("c", "Gamma")]


def _answers(monkeypatch, *values):
    it = iter(values)

    def fake_input(prompt=""):
        value = next(it)
        if isinstance(value, BaseException):
            raise value
        return value

    monkeypatch.setattr("builtins.input", fake_input)


@pytest.fixture
def prompter(monkeypatch):
    monkeypatch.setattr(mod, "_HAS_CURSES", False)
    return mod.TerminalPrompter()


class TestMultiSelect:
    def test_enter_accepts_defaults(self, prompter, monkeypatch, capsys):
        _answers(monkeypatch, "")
        assert prompter.multi_select("Pick:", OPTIONS, defaults=["a", "c"]) == ["a", "c"]
        out = capsys.readouterr().out
        assert "1. [*] Alpha" in out
        assert "2. [ ] Beta" in out

    def test_numbers(self, prompter, monkeypatch):
        _answers(monkeypatch, "3, 1, 9, x, 1")
        assert prompter.multi_select("Pick:", OPTIONS, defaults=["a"]) == ["c", "a"]

    def test_all(self, prompter, monkeypatch):
        _answers(monkeypatch, "ALL")
        assert prompter.multi_select("Pick:", OPTIONS) == ["a", "b", "c"]

    def test_q_cancels(self, prompter, monkeypatch):
        _answers(monkeypatch, "q")
        assert prompter.multi_select("Pick:", OPTIONS, defaults=["a"]) is None

    @pytest.mark.parametrize("exc", [EOFError(), KeyboardInterrupt()])
    def test_interrupt_cancels(self, prompter, monkeypatch, exc):
        _answers(monkeypatch, exc)
        assert prompter.multi_select("Pick:", OPTIONS, defaults=["a"]) is None

    def test_no_options(self, prompter):
        assert prompter.multi_select("Pick:", []) == []


class TestConfirm:
    @pytest.mark.parametrize("answer,expected", [
        ("", True),
        ("y", True),
        ("YES", True),
        ("n", False),
        ("nope", False),
    ])
    def test_answers(self, prompter, monkeypatch, answer, expected):
        _answers(monkeypatch, answer)
        assert prompter.confirm("Proceed?") is expected

    def test_default_no(self, prompter, monkeypatch):
        _answers(monkeypatch, "")
        assert prompter.confirm("Proceed?", default=False) is False

    @pytest.mark.parametrize("exc", [EOFError(), KeyboardInterrupt()])
    def test_interrupt_declines(self, prompter, monkeypatch, exc):
        _answers(monkeypatch, exc)
        assert prompter.confirm("Proceed?") is False
