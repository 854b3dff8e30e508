"""
Local model runtime.

Runs a single-file GGUF checkpoint with transformers. The engine only talks
to the ``ModelRuntime`` protocol, so tests and other backends can swap in
their own implementation.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationParams:
    """Decoding parameters, tuned for determinism over creativity."""

    max_new_tokens: int = 256
    temperature: float = 0.1
    top_p: float = 0.9
    top_k: int = 20
    repetition_penalty: float = 1.1
    stop: tuple[str, ...] = ()


class ModelRuntime(Protocol):
    def is_loaded(self) -> bool: ...

    def load(self, path: Path) -> None: ...

    def unload(self) -> None: ...

    def complete(self, prompt: str, params: GenerationParams) -> str: ...


class TransformersRuntime:
    """Causal LM runtime backed by transformers' GGUF loader."""

    def __init__(self, device: str = "cpu", dtype: str = "float32"):
        self.device = device
        self.dtype = dtype
        self.model = None
        self.tokenizer = None
        self.model_path: Path | None = None

    def is_loaded(self) -> bool:
        return self.model is not None

    def load(self, path: Path) -> None:
        """Load the GGUF file at ``path``."""
        import torch
        from transformers import AutoModelForCausalLM, AutoTokenizer

        path = Path(path)
        logger.info(f"Loading translation model from {path}")

        dtype_map = {
            "float16": torch.float16,
            "bfloat16": torch.bfloat16,
            "float32": torch.float32,
        }

        self.tokenizer = AutoTokenizer.from_pretrained(str(path.parent), gguf_file=path.name)
        self.model = AutoModelForCausalLM.from_pretrained(
            str(path.parent),
            gguf_file=path.name,
            torch_dtype=dtype_map[self.dtype],
        )
        self.model.to(self.device)
        self.model.eval()
        self.model_path = path

        logger.info("Translation model loaded successfully")

    def unload(self) -> None:
        """Unload model to free memory."""
        if self.model is not None:
            del self.model
            self.model = None
        if self.tokenizer is not None:
            del self.tokenizer
            self.tokenizer = None
        self.model_path = None

        import torch

        if torch.cuda.is_available():
            torch.cuda.empty_cache()

    def complete(self, prompt: str, params: GenerationParams) -> str:
        """Generate a continuation of ``prompt`` and return only the new text."""
        if self.model is None or self.tokenizer is None:
            raise RuntimeError("No model loaded")

        import torch

        inputs = self.tokenizer(prompt, return_tensors="pt").to(self.model.device)

        generate_kwargs = {
            "max_new_tokens": params.max_new_tokens,
            "repetition_penalty": params.repetition_penalty,
            "pad_token_id": self.tokenizer.eos_token_id,
        }
        if params.temperature > 0:
            generate_kwargs.update(
                do_sample=True,
                temperature=params.temperature,
                top_p=params.top_p,
                top_k=params.top_k,
            )
        else:
            generate_kwargs["do_sample"] = False
        if params.stop:
            generate_kwargs["stop_strings"] = list(params.stop)
            generate_kwargs["tokenizer"] = self.tokenizer

        with torch.inference_mode():
            output = self.model.generate(**inputs, **generate_kwargs)

        prompt_length = inputs["input_ids"].shape[-1]
        return self.tokenizer.decode(output[0][prompt_length:], skip_special_tokens=True)
