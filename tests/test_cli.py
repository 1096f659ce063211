import json
from pathlib import Path

from pytest import MonkeyPatch
from typer.testing import CliRunner

from tests.utils import SAMPLE_HTML
from word_highlighter.cli import app

runner = CliRunner()


def test_cli_classify_outputs_decisions():
    """classify reports candidate status and language per word."""
    result = runner.invoke(app, ["classify", "Installation", "the", "Česko"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert [item["candidate"] for item in payload] == [True, False, True]
    assert payload[2]["language"] == "cz"


def test_cli_highlight_writes_annotated_html(tmp_path: Path):
    """highlight summarizes the wrapped words and writes the annotated page."""
    input_path = tmp_path / "page.html"
    input_path.write_text(SAMPLE_HTML, encoding="utf-8")
    output_path = tmp_path / "out" / "page.html"
    result = runner.invoke(
        app,
        ["highlight", "--input-path", str(input_path), "--output-path", str(output_path)],
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["segments"] == 1
    assert payload["words"] == ["Welcome", "Installation", "API"]
    markup = output_path.read_text(encoding="utf-8")
    assert '<span class="highlightable-word">Installation</span>' in markup
    assert "<code>Configuration Variable</code>" in markup


def test_cli_print_config():
    """print-config command dumps the default configuration values."""
    result = runner.invoke(app, ["print-config"])
    assert result.exit_code == 0
    assert "hover_delay_ms: 300" in result.stdout
    assert "model: gpt-4.1-mini" in result.stdout


def test_cli_explain_without_key_fails(monkeypatch: MonkeyPatch):
    """explain exits non-zero with the not-configured message when no key is set."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    result = runner.invoke(app, ["explain", "Installation"])
    assert result.exit_code == 1
    assert "API key not set" in result.output


def test_cli_explain_uses_openai_client(monkeypatch: MonkeyPatch):
    """explain wires the configured model and key into the OpenAI client."""
    calls: dict = {}

    class DummyClient:
        def __init__(self, settings, api_key: str) -> None:
            calls["model"] = settings.model
            calls["api_key"] = api_key

        async def generate(self, prompt: str) -> str:
            calls["prompt"] = prompt
            return "A detailed answer."

    monkeypatch.setattr("word_highlighter.cli.OpenAIExplainClient", DummyClient)
    result = runner.invoke(
        app,
        ["explain", "Installation", "--detailed", "--openai-model", "gpt-4o-mini"],
        env={"OPENAI_API_KEY": "dummy-key"},
    )
    assert result.exit_code == 0
    assert result.stdout.strip() == "A detailed answer."
    assert calls["model"] == "gpt-4o-mini"
    assert calls["api_key"] == "dummy-key"
    assert 'Analyze the English word or phrase: "Installation"' in calls["prompt"]


def test_cli_highlight_honours_configured_stop_words(tmp_path: Path):
    """highlight reads extra stop words from the YAML config."""
    input_path = tmp_path / "page.html"
    input_path.write_text(SAMPLE_HTML, encoding="utf-8")
    config_path = tmp_path / "config.yaml"
    config_path.write_text("extra_stop_words:\n  - Welcome\n", encoding="utf-8")
    result = runner.invoke(
        app, ["highlight", "--input-path", str(input_path), "--config", str(config_path)]
    )
    assert result.exit_code == 0
    assert json.loads(result.stdout)["words"] == ["Installation", "API"]
