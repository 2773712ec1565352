"""
Integration tests for the command line entry point.
"""

import pytest

from smartplate.cli import build_parser, main

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def offline_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("USE_NULL_LLM", "true")
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("SMARTPLATE_LOG_DIR", raising=False)


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "prefs.db")


class TestParser:
    """Test argument parsing."""

    def test_defaults(self):
        args = build_parser().parse_args(["recommend"])
        assert args.count == 5
        assert args.style == "Mediterranean"
        assert args.ingredients == []

    def test_unknown_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["cook"])


class TestCommands:
    """Test each command end to end."""

    def test_budget(self, db_path, capsys):
        main(["budget", "--meal-type", "dinner", "--db-path", db_path])
        out = capsys.readouterr().out

        assert "Meal budget for dinner (Healthy)" in out
        assert "880 kcal" in out

    def test_budget_with_preset(self, db_path, capsys):
        main(["budget", "--meal-type", "dinner", "--preset", "WeightLoss", "--db-path", db_path])
        assert "(WeightLoss)" in capsys.readouterr().out

    def test_suggest(self, capsys):
        main(["suggest", "--style", "Thai", "--ingredients", "tofu", "lime"])
        lines = capsys.readouterr().out.splitlines()

        titles = [line for line in lines if line.startswith("- ")]
        assert len(titles) == 5

    def test_recommend(self, db_path, capsys):
        main(["recommend", "--meal-type", "lunch", "--count", "3", "--db-path", db_path])
        out = capsys.readouterr().out

        assert out.startswith("1. ")
        assert "3. " in out
        assert "score=" in out
