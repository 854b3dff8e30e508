"""Error taxonomy shared by the session, translation and model store layers."""

from __future__ import annotations


class ParleyError(Exception):
    """Base class for every error raised to a caller."""

    code = "PARLEY_ERROR"
    message = "Unexpected error."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": str(self)}


class Busy(ParleyError):
    code = "BUSY"
    message = "Another channel is active; try again when it is idle."


class InvalidState(ParleyError):
    code = "INVALID_STATE"
    message = "Operation is not valid in the channel's current state."


class TranslationFailed(ParleyError):
    code = "TRANSLATION_FAILED"
    message = "Failed to translate text. Please try again."


class NoModelConfigured(TranslationFailed):
    code = "NO_MODEL_CONFIGURED"
    message = "No translation model is selected. Download or select a model first."


class NotInstalled(ParleyError):
    code = "NOT_INSTALLED"
    message = "Model file is not installed."


class DownloadFailed(ParleyError):
    code = "DOWNLOAD_FAILED"
    message = "Model download failed. Please try again."


class DownloadCancelled(ParleyError):
    code = "DOWNLOAD_CANCELLED"
    message = "Model download was cancelled."


class SynthesisFailed(ParleyError):
    code = "SYNTHESIS_FAILED"
    message = "Failed to speak text."


class TranscriptionUnsupported(ParleyError):
    code = "TRANSCRIPTION_UNSUPPORTED"
    message = "Speech recognition is not available for this language."


class TranscriptionFailed(ParleyError):
    code = "TRANSCRIPTION_FAILED"
    message = "Speech recognition failed."
