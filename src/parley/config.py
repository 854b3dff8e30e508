"""Configuration for Parley."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class ParleyConfig(BaseSettings):
    """Configuration for the conversation session and the local model."""

    # Model storage
    models_dir: Path = Field(
        default=Path("./models"), description="Directory holding downloaded model files"
    )
    state_file: Path | None = Field(
        default=None,
        description="JSON file persisting the active model (defaults to models_dir/state.json)",
    )

    # Session languages
    top_language: str = Field(default="en", description="Language spoken on the top half")
    bottom_language: str = Field(default="es", description="Language spoken on the bottom half")
    supported_languages: list[str] = [
        "en",
        "es",
        "fr",
        "de",
        "it",
        "pt",
        "ru",
        "ja",
        "ko",
        "zh",
        "ar",
        "hi",
    ]

    # Generation settings
    max_new_tokens: int = Field(default=256, description="Upper bound on generated tokens")
    temperature: float = Field(default=0.1, description="Sampling temperature")
    top_p: float = Field(default=0.9, description="Nucleus sampling cutoff")
    top_k: int = Field(default=20, description="Top-k sampling cutoff")
    repetition_penalty: float = Field(default=1.1, description="Penalty for repeated tokens")

    # Hardware settings
    device: Literal["cuda", "cpu", "mps"] = Field(
        default="cpu", description="Device to run the model on"
    )
    dtype: Literal["float16", "bfloat16", "float32"] = Field(
        default="float32", description="Model precision"
    )

    # Download settings
    download_chunk_size: int = Field(default=1024 * 1024, description="Bytes per read")
    download_timeout: float = Field(default=30.0, description="Network timeout in seconds")

    # Speech settings
    transcriber_stop_timeout: float = Field(
        default=3.0, description="Seconds to wait for the recognizer to wind down on stop"
    )

    model_config = {
        "env_prefix": "PARLEY_",
        "env_file": ".env",
    }

    @property
    def active_model_file(self) -> Path:
        return self.state_file or self.models_dir / "state.json"

    def generation_params(self):
        """Build the decoding parameters for the translation engine."""
        from .translation.runtime import GenerationParams

        return GenerationParams(
            max_new_tokens=self.max_new_tokens,
            temperature=self.temperature,
            top_p=self.top_p,
            top_k=self.top_k,
            repetition_penalty=self.repetition_penalty,
        )
