import json
from unittest.mock import patch

import pytest

from conftest import FakeTranslator
from i18n_translator.cli import main as cli
from i18n_translator.core.exceptions import ProviderAuthError
from i18n_translator.core.router import FallbackRouter

PROVIDER_KEYS = ("SYSTRAN_API_KEY", "DEEPL_API_KEY", "GOOGLE_API_KEY", "OPENAI_API_KEY", "GEMINI_API_KEY")


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    for key in PROVIDER_KEYS:
        monkeypatch.delenv(key, raising=False)
    return str(tmp_path / "config.json")


def patched_router(*translators):
    return patch.object(cli, "build_router", return_value=FallbackRouter(list(translators)))


class TestCli:

    def test_translates_into_several_languages(self, config_path, capsys):
        with patched_router(FakeTranslator("deepl")):
            code = cli.main(["Save", "Open", "-t", "de", "-t", "fr", "--config", config_path])

        out = capsys.readouterr().out
        assert code == 0
        assert "[de]" in out and "[fr]" in out
        assert "Save -> de:Save (deepl)" in out
        assert "Open -> fr:Open (deepl)" in out

    def test_json_output_with_stats(self, config_path, capsys):
        with patched_router(FakeTranslator("deepl")):
            code = cli.main(["Save", "-t", "de", "--json", "--stats", "--config", config_path])

        data = json.loads(capsys.readouterr().out)
        assert code == 0
        assert data["de"] == [
            {"source": "Save", "text": "de:Save", "provider": "deepl", "cached": False, "error": None}
        ]
        assert data["_stats"]["providers"]["deepl"]["requests"] == 1
        assert data["_stats"]["cache"]["misses"] == 1

    def test_partial_failure_exit_code(self, config_path, capsys):
        failing = FakeTranslator("deepl", script=[ProviderAuthError("deepl", "HTTP 401")])
        with patched_router(failing):
            code = cli.main(["Save", "-t", "de", "--config", config_path])

        assert code == 1
        assert "ERROR" in capsys.readouterr().out

    def test_reads_input_file(self, config_path, tmp_path, capsys):
        source = tmp_path / "strings.txt"
        source.write_text("Save\n\nOpen\n", encoding="utf-8")

        with patched_router(FakeTranslator("deepl")):
            code = cli.main(["-i", str(source), "-t", "de", "--config", config_path])

        out = capsys.readouterr().out
        assert code == 0
        assert "de:Save" in out and "de:Open" in out

    def test_missing_input_file(self, config_path, tmp_path):
        assert cli.main(["-i", str(tmp_path / "nope.txt"), "-t", "de", "--config", config_path]) == 2

    def test_nothing_to_translate(self, config_path):
        assert cli.main(["-t", "de", "--config", config_path]) == 2

    def test_target_language_required(self, config_path):
        assert cli.main(["Save", "--config", config_path]) == 2

    def test_no_providers_configured(self, config_path):
        assert cli.main(["Save", "-t", "de", "--config", config_path]) == 2

    def test_build_router_from_config(self, config_path, monkeypatch):
        monkeypatch.setenv("DEEPL_API_KEY", "k")
        monkeypatch.setenv("GOOGLE_API_KEY", "g")

        router = cli.build_router(cli.ConfigManager(config_path))

        assert [t.name for t in router.provider_chain("sw")] == ["deepl", "google"]
        assert router.available_providers() == ["deepl", "google"]

    def test_list_providers(self, config_path, monkeypatch, capsys):
        monkeypatch.setenv("DEEPL_API_KEY", "k")

        assert cli.main(["--list-providers", "--config", config_path]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert any(line.startswith("deepl") and line.endswith("ready") for line in lines)
        assert any(line.startswith("systran") and line.endswith("no API key") for line in lines)
        assert any(line.startswith("gemini") and line.endswith("disabled") for line in lines)
