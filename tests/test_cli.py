"""Tests for the fixprompt CLI commands that need no LLM."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

from typer.testing import CliRunner

from fixprompt.cli import app

runner = CliRunner()


class TestCli:
    def test_classify(self):
        result = runner.invoke(app, ["classify", "Fix this Python function that sorts a list"])
        assert result.exit_code == 0
        assert "Domain: technical (confidence: 0.20)" in result.output

    def test_classify_json(self):
        result = runner.invoke(app, ["classify", "my portfolio", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["domain"] == "finance"

    def test_classify_empty(self):
        result = runner.invoke(app, ["classify", "   "])
        assert result.exit_code == 1

    def test_score(self):
        result = runner.invoke(app, ["score", "I need help"])
        assert result.exit_code == 0
        assert "Score: 16/100" in result.output

    def test_questions_fallback(self):
        result = runner.invoke(app, ["questions", "nonexistent_domain_xyz", "--json"])
        assert result.exit_code == 0
        assert [q["id"] for q in json.loads(result.output)] == ["q1", "q2", "q3"]

    def test_improve_malformed_context_file(self, tmp_path):
        context_file = tmp_path / "context.json"
        context_file.write_text('{"previousPrompts": [')
        with patch("litellm.acompletion", new=AsyncMock()) as completion:
            result = runner.invoke(app, ["improve", "sort a list", "--context", str(context_file)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "✗ InvalidInput: Invalid context file" in result.output
        completion.assert_not_called()

    def test_improve_missing_context_file(self, tmp_path):
        result = runner.invoke(app, ["improve", "sort a list", "--context", str(tmp_path / "nope.json")])
        assert result.exit_code == 1
        assert "InvalidInput" in result.output
