"""Downloadable model catalog, installed files and the active model pointer."""

from .catalog import CATALOG, MODEL_EXTENSIONS, ModelDescriptor
from .pointer import ActiveModelPointer
from .store import DownloadStatus, DownloadTask, InstalledModel, ModelStore
from .transfer import HttpTransfer, Transfer

__all__ = [
    "ActiveModelPointer",
    "CATALOG",
    "DownloadStatus",
    "DownloadTask",
    "HttpTransfer",
    "InstalledModel",
    "MODEL_EXTENSIONS",
    "ModelDescriptor",
    "ModelStore",
    "Transfer",
]
