"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest
from fakes import FakeRuntime, FakeSynthesizer, FakeTransfer, FakeTranscriber, FakeTranslator


@pytest.fixture
def models_dir(tmp_path) -> Path:
    return tmp_path / "models"


@pytest.fixture
def transfer():
    return FakeTransfer()


@pytest.fixture
def store(models_dir, transfer):
    """Model store backed by a fake transfer."""
    from parley.model_store import ModelStore

    return ModelStore(models_dir, transfer=transfer)


@pytest.fixture
def descriptor(store):
    return store.catalog[0]


@pytest.fixture
def model_file(store, descriptor) -> Path:
    """An installed (but not yet active) model file."""
    path = store.path_for(descriptor)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"GGUF")
    return path


@pytest.fixture
def runtime():
    return FakeRuntime()


@pytest.fixture
def engine(store, runtime):
    from parley.translation import TranslationEngine

    return TranslationEngine(store, runtime)


@pytest.fixture
def transcriber():
    return FakeTranscriber()


@pytest.fixture
def synthesizer():
    return FakeSynthesizer()


@pytest.fixture
def translator():
    return FakeTranslator()


@pytest.fixture
def changes():
    return []


@pytest.fixture
def orchestrator(transcriber, synthesizer, translator, changes):
    """Orchestrator with en on top and es on the bottom."""
    from parley.session import SessionOrchestrator

    return SessionOrchestrator(
        transcriber=transcriber,
        synthesizer=synthesizer,
        translator=translator,
        top_language="en",
        bottom_language="es",
        stop_timeout_s=1.0,
        on_change=changes.append,
    )


@pytest.fixture
def parley_config(models_dir):
    from parley.config import ParleyConfig

    return ParleyConfig(models_dir=models_dir, transcriber_stop_timeout=1.0)
