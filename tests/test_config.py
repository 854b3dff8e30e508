"""Tests for configuration module."""

from pathlib import Path


class TestParleyConfig:
    """Tests for ParleyConfig."""

    def test_default_config(self):
        """Test default configuration values."""
        from parley.config import ParleyConfig

        config = ParleyConfig()

        assert config.top_language == "en"
        assert config.bottom_language == "es"
        assert config.models_dir == Path("./models")
        assert config.device == "cpu"
        assert config.temperature == 0.1
        assert config.transcriber_stop_timeout == 3.0

    def test_config_from_env(self, monkeypatch):
        """Test configuration from environment variables."""
        from parley.config import ParleyConfig

        monkeypatch.setenv("PARLEY_BOTTOM_LANGUAGE", "fr")
        monkeypatch.setenv("PARLEY_MODELS_DIR", "/data/models")
        monkeypatch.setenv("PARLEY_MAX_NEW_TOKENS", "64")

        config = ParleyConfig()

        assert config.bottom_language == "fr"
        assert config.models_dir == Path("/data/models")
        assert config.max_new_tokens == 64

    def test_supported_languages(self):
        """Test supported language list."""
        from parley.config import ParleyConfig

        config = ParleyConfig()

        assert "en" in config.supported_languages
        assert "ja" in config.supported_languages
        assert "hi" in config.supported_languages
        assert len(config.supported_languages) == 12

    def test_active_model_file(self, tmp_path):
        """Test the pointer file defaults to the models directory."""
        from parley.config import ParleyConfig

        assert ParleyConfig(models_dir=tmp_path).active_model_file == tmp_path / "state.json"

        custom = tmp_path / "settings.json"
        config = ParleyConfig(models_dir=tmp_path, state_file=custom)
        assert config.active_model_file == custom

    def test_generation_params(self):
        """Test decoding parameters follow the settings."""
        from parley.config import ParleyConfig

        params = ParleyConfig(temperature=0.0, top_k=5).generation_params()

        assert params.temperature == 0.0
        assert params.top_k == 5
        assert params.max_new_tokens == 256
        assert params.stop == ()


class TestLanguages:
    """Tests for language helpers."""

    def test_names_and_locales(self):
        """Test known tags map to names and speech locales."""
        from parley.languages import language_name, speech_locale

        assert language_name("es") == "Spanish"
        assert language_name("zh") == "Chinese"
        assert speech_locale("ja") == "ja-JP"
        assert speech_locale("pt") == "pt-BR"

    def test_regional_tags(self):
        """Test regional tags keep their region and use the base name."""
        from parley.languages import base_language, language_name, speech_locale

        assert base_language("en_GB") == "en"
        assert language_name("en-GB") == "English"
        assert speech_locale("en_GB") == "en-GB"

    def test_unknown_tag(self):
        """Test unknown tags fall back to the code itself."""
        from parley.languages import language_name, speech_locale

        assert language_name("sw") == "SW"
        assert speech_locale("sw") == "sw"
