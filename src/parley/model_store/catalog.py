"""Static catalog of downloadable translation models."""

from dataclasses import dataclass

from huggingface_hub import hf_hub_url

MODEL_EXTENSIONS = (".gguf", ".bin")


@dataclass(frozen=True)
class ModelDescriptor:
    """Catalog metadata for a downloadable model, installed or not."""

    identifier: str
    name: str
    size: str
    description: str
    download_url: str
    file_name: str


def _hub_model(
    identifier: str,
    name: str,
    size: str,
    description: str,
    repo_id: str,
    file_name: str,
) -> ModelDescriptor:
    return ModelDescriptor(
        identifier=identifier,
        name=name,
        size=size,
        description=description,
        download_url=hf_hub_url(repo_id, file_name),
        file_name=file_name,
    )


# Recommended GGUF models for translation
CATALOG: tuple[ModelDescriptor, ...] = (
    _hub_model(
        "llama-2-7b-chat-q4_0",
        "LLaMA 2 7B Chat (Q4_0)",
        "3.8GB",
        "Good balance of quality and speed for translation tasks",
        "TheBloke/Llama-2-7B-Chat-GGUF",
        "llama-2-7b-chat.Q4_0.gguf",
    ),
    _hub_model(
        "codellama-7b-instruct-q4_0",
        "CodeLlama 7B Instruct (Q4_0)",
        "3.8GB",
        "Optimized for instruction following, good for translation",
        "TheBloke/CodeLlama-7B-Instruct-GGUF",
        "codellama-7b-instruct.Q4_0.gguf",
    ),
    _hub_model(
        "mistral-7b-instruct-q4_0",
        "Mistral 7B Instruct (Q4_0)",
        "4.1GB",
        "High quality multilingual model",
        "TheBloke/Mistral-7B-Instruct-v0.1-GGUF",
        "mistral-7b-instruct-v0.1.Q4_0.gguf",
    ),
)
