"""Tests for the command line interface."""

import pytest
from typer.testing import CliRunner

from parley.cli import app
from parley.model_store import ModelStore

runner = CliRunner()


@pytest.fixture
def env(models_dir):
    return {"PARLEY_MODELS_DIR": str(models_dir)}


class TestCli:
    """Tests for the parley commands."""

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "Parley v0.1.0" in result.output

    def test_languages(self):
        """Test languages are listed with their speech locales."""
        result = runner.invoke(app, ["languages"])

        assert result.exit_code == 0
        assert "Spanish (es-ES)" in result.output

    def test_catalog(self, env):
        result = runner.invoke(app, ["catalog"], env=env)

        assert result.exit_code == 0
        assert "Available models" in result.output

    def test_no_active_model(self, env):
        result = runner.invoke(app, ["active"], env=env)

        assert result.exit_code == 0
        assert "No model selected" in result.output

    def test_select_missing_file(self, env, models_dir):
        """Test selecting a file that is not there fails."""
        result = runner.invoke(app, ["select", str(models_dir / "ghost.gguf")], env=env)

        assert result.exit_code == 1

    def test_select_and_delete(self, env, models_dir):
        """Test a model can be selected and deleted from the command line."""
        models_dir.mkdir(parents=True)
        path = models_dir / "local.gguf"
        path.write_bytes(b"GGUF")

        result = runner.invoke(app, ["select", str(path)], env=env)
        assert result.exit_code == 0
        assert ModelStore(models_dir).get_active() == path.resolve()

        result = runner.invoke(app, ["delete", str(path)], env=env)
        assert result.exit_code == 0
        assert not path.exists()
        assert ModelStore(models_dir).get_active() is None

    def test_download_unknown_model(self, env):
        result = runner.invoke(app, ["download", "gpt-5"], env=env)

        assert result.exit_code == 1
        assert "Unknown model" in result.output
