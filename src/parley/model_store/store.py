"""
Model store.

Keeps the static catalog and the set of installed files as two separate
collections joined by file name at query time. Downloads stream into a
``.part`` file next to the final path and are renamed into place only after
a complete, successful transfer.
"""

import logging
import os
import threading
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from pathlib import Path

from ..errors import DownloadCancelled, DownloadFailed, NotInstalled, ParleyError
from .catalog import CATALOG, MODEL_EXTENSIONS, ModelDescriptor
from .pointer import ActiveModelPointer
from .transfer import HttpTransfer, Transfer

logger = logging.getLogger(__name__)

FractionCallback = Callable[[float], None]

PARTIAL_SUFFIX = ".part"


class DownloadStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class _Cancelled(Exception):
    pass


class InstalledModel:
    """A model file present in the models directory."""

    def __init__(self, path: Path):
        stat = path.stat()
        self.path = path
        self.size_bytes = stat.st_size
        self.installed_at = datetime.fromtimestamp(stat.st_mtime)

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "size_bytes": self.size_bytes,
            "installed_at": self.installed_at.isoformat(),
        }


class DownloadTask:
    """Observable, cancellable download of one catalog entry."""

    def __init__(self, descriptor: ModelDescriptor, on_progress: FractionCallback | None = None):
        self.descriptor = descriptor
        self.bytes_written = 0
        self.total_bytes: int | None = None
        self.status = DownloadStatus.PENDING
        self.path: Path | None = None
        self.error: ParleyError | None = None
        self._on_progress = on_progress
        self._fraction = 0.0
        self._cancel = threading.Event()
        self._done = threading.Event()

    @property
    def fraction(self) -> float:
        return self._fraction

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        """Ask the transfer to stop at its next chunk."""
        self._cancel.set()

    def wait(self, timeout: float | None = None) -> Path:
        """Block until the task ends; return the installed path or raise its error."""
        if not self._done.wait(timeout):
            raise TimeoutError(f"Download of {self.descriptor.identifier} still running")
        if self.error is not None:
            raise self.error
        if self.path is None:
            raise DownloadFailed(f"Download of {self.descriptor.identifier} ended without a file")
        return self.path

    def to_dict(self) -> dict:
        return {
            "identifier": self.descriptor.identifier,
            "status": self.status.value,
            "bytes_written": self.bytes_written,
            "total_bytes": self.total_bytes,
            "fraction": self._fraction,
            "path": str(self.path) if self.path else None,
            "error": self.error.to_dict() if self.error else None,
        }

    def _report(self, fraction: float) -> None:
        fraction = min(max(fraction, 0.0), 1.0)
        if fraction < self._fraction:
            return
        self._fraction = fraction
        if self._on_progress:
            self._on_progress(fraction)


class ModelStore:
    """Catalog, installed files, downloads and the active model pointer."""

    def __init__(
        self,
        models_dir: Path,
        pointer: ActiveModelPointer | None = None,
        transfer: Transfer | None = None,
        catalog: tuple[ModelDescriptor, ...] = CATALOG,
    ):
        self.models_dir = Path(models_dir).expanduser().resolve()
        self.pointer = pointer or ActiveModelPointer(self.models_dir / "state.json")
        self.transfer = transfer or HttpTransfer()
        self.catalog = catalog
        self._lock = threading.Lock()
        self._tasks: dict[str, DownloadTask] = {}
        self._finished: dict[str, DownloadTask] = {}

    @classmethod
    def from_config(cls, config) -> "ModelStore":
        return cls(
            config.models_dir,
            pointer=ActiveModelPointer(config.active_model_file),
            transfer=HttpTransfer(
                chunk_size=config.download_chunk_size,
                timeout=config.download_timeout,
            ),
        )

    # Catalog

    def find(self, identifier: str) -> ModelDescriptor | None:
        for descriptor in self.catalog:
            if descriptor.identifier == identifier:
                return descriptor
        return None

    def path_for(self, descriptor: ModelDescriptor) -> Path:
        return self.models_dir / descriptor.file_name

    def descriptor_for(self, path: Path) -> ModelDescriptor | None:
        name = Path(path).name
        for descriptor in self.catalog:
            if descriptor.file_name == name:
                return descriptor
        return None

    def is_installed(self, descriptor: ModelDescriptor) -> bool:
        return self.path_for(descriptor).is_file()

    # Installed files

    def list_installed(self) -> list[Path]:
        """Paths of installed model files; empty when nothing is installed."""
        if not self.models_dir.is_dir():
            return []
        return sorted(
            p
            for p in self.models_dir.iterdir()
            if p.is_file() and p.suffix.lower() in MODEL_EXTENSIONS
        )

    def installed(self) -> list[InstalledModel]:
        return [InstalledModel(p) for p in self.list_installed()]

    # Active model

    def get_active(self) -> Path | None:
        return self.pointer.get()

    def select_active(self, path: Path) -> Path:
        path = Path(path).expanduser().resolve()
        if not path.is_file():
            raise NotInstalled(f"Model file not found: {path}")
        self.pointer.set(path)
        logger.info(f"Active model set to {path}")
        return path

    def delete(self, path: Path) -> None:
        """Remove a model file, clearing the active pointer if it referenced it."""
        path = Path(path).expanduser().resolve()
        if path.parent != self.models_dir:
            raise NotInstalled(f"Not a file in the models directory: {path}")

        if path.exists():
            path.unlink()
            logger.info(f"Deleted model {path}")

        active = self.get_active()
        if active is not None and active.expanduser().resolve() == path:
            self.pointer.clear()
            logger.info("Cleared active model")

    # Downloads

    def task(self, identifier: str) -> DownloadTask | None:
        with self._lock:
            return self._tasks.get(identifier)

    def finished_task(self, identifier: str) -> DownloadTask | None:
        """The most recent ended task for an entry, kept so callers can read its outcome."""
        with self._lock:
            return self._finished.get(identifier)

    def start_download(
        self, descriptor: ModelDescriptor, on_progress: FractionCallback | None = None
    ) -> DownloadTask:
        """Run a download on a background thread and return its task."""
        task, created = self._claim(descriptor, on_progress)
        if created:
            thread = threading.Thread(
                target=self._run,
                args=(task,),
                name=f"download-{descriptor.identifier}",
                daemon=True,
            )
            thread.start()
        return task

    def download(
        self, descriptor: ModelDescriptor, on_progress: FractionCallback | None = None
    ) -> Path:
        """Download in the calling thread and return the installed path."""
        task, created = self._claim(descriptor, on_progress)
        if created:
            self._run(task)
        return task.wait()

    def _claim(
        self, descriptor: ModelDescriptor, on_progress: FractionCallback | None
    ) -> tuple[DownloadTask, bool]:
        with self._lock:
            task = self._tasks.get(descriptor.identifier)
            if task is not None and not task.done:
                return task, False
            task = DownloadTask(descriptor, on_progress)
            self._tasks[descriptor.identifier] = task
            return task, True

    def _run(self, task: DownloadTask) -> None:
        descriptor = task.descriptor
        final = self.path_for(descriptor)
        temp = final.with_name(final.name + PARTIAL_SUFFIX)

        status = DownloadStatus.FAILED
        error: ParleyError | None = None

        try:
            if task.cancel_requested:
                raise _Cancelled()

            if final.exists():
                logger.info(f"Model already exists: {final}")
                self.select_active(final)
                task._report(1.0)
                status = DownloadStatus.COMPLETED
                return

            logger.info(f"Downloading model: {descriptor.name}")
            self.models_dir.mkdir(parents=True, exist_ok=True)
            task.status = DownloadStatus.IN_PROGRESS

            def progress(written: int, total: int | None) -> None:
                if task.cancel_requested:
                    raise _Cancelled()
                task.bytes_written = written
                task.total_bytes = total
                task._report(written / total if total else 0.0)

            code = self.transfer.download(descriptor.download_url, temp, progress)

            if task.cancel_requested:
                raise _Cancelled()
            if code != 200:
                raise DownloadFailed(f"Download failed with status code: {code}")

            os.replace(temp, final)
            self.select_active(final)
            task._report(1.0)
            status = DownloadStatus.COMPLETED
            logger.info(f"Model downloaded successfully: {final}")

        except _Cancelled:
            status = DownloadStatus.CANCELLED
            error = DownloadCancelled(f"Download of {descriptor.name} was cancelled")
            logger.info(f"Download cancelled: {descriptor.name}")
        except DownloadFailed as exc:
            error = exc
            logger.error(f"Failed to download model: {exc}")
        except Exception as exc:
            error = DownloadFailed(f"Failed to download {descriptor.name}: {exc}")
            error.__cause__ = exc
            logger.error(f"Failed to download model: {exc}")
        finally:
            try:
                temp.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning(f"Could not remove partial download {temp}: {exc}")

            task.status = status
            task.error = error
            if status == DownloadStatus.COMPLETED:
                task.path = final

            with self._lock:
                if self._tasks.get(descriptor.identifier) is task:
                    del self._tasks[descriptor.identifier]
                self._finished[descriptor.identifier] = task
            task._done.set()
