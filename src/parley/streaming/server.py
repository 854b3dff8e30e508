"""
Conversation server.

Provides REST and WebSocket APIs for:
- Driving the two-channel session (start, stop, speak, swap)
- Relaying the device's speech recognizer and voice
- Browsing, downloading and selecting translation models
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .. import __version__
from ..config import ParleyConfig
from ..errors import (
    Busy,
    DownloadCancelled,
    DownloadFailed,
    InvalidState,
    NoModelConfigured,
    NotInstalled,
    ParleyError,
    SynthesisFailed,
    TranscriptionFailed,
    TranscriptionUnsupported,
    TranslationFailed,
)
from ..languages import language_name, speech_locale
from ..model_store import ModelStore
from ..session import (
    ChannelSide,
    ChannelState,
    SessionOrchestrator,
    SessionState,
    Synthesizer,
    Transcriber,
)
from ..translation import ModelRuntime, TranslationEngine, TransformersRuntime
from .relay import RelaySynthesizer, RelayTranscriber

logger = logging.getLogger(__name__)

# Most specific class first.
ERROR_STATUS: list[tuple[type[ParleyError], int]] = [
    (Busy, 409),
    (InvalidState, 409),
    (DownloadCancelled, 409),
    (NotInstalled, 404),
    (NoModelConfigured, 412),
    (TranscriptionUnsupported, 422),
    (TranslationFailed, 502),
    (DownloadFailed, 502),
    (SynthesisFailed, 502),
    (TranscriptionFailed, 502),
]


def status_for(exc: ParleyError) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return 400


class TranscriptUpdate(BaseModel):
    """Text recognized by the client device."""

    text: str
    final: bool = False


class SpeakRequest(BaseModel):
    """Request to speak text; defaults to the channel's translation."""

    text: str | None = None
    language: str | None = None


class LanguageUpdate(BaseModel):
    language: str


class ModelSelection(BaseModel):
    path: str


class ParleyServer:
    """Wires the model store, translation engine and session together."""

    def __init__(
        self,
        config: ParleyConfig | None = None,
        store: ModelStore | None = None,
        runtime: ModelRuntime | None = None,
        transcriber: Transcriber | None = None,
        synthesizer: Synthesizer | None = None,
    ):
        self.config = config or ParleyConfig()
        self.store = store or ModelStore.from_config(self.config)
        self.runtime = runtime or TransformersRuntime(self.config.device, self.config.dtype)
        self.engine = TranslationEngine(
            self.store, self.runtime, self.config.generation_params()
        )
        self.transcriber = transcriber or RelayTranscriber(
            speech_locale(tag) for tag in self.config.supported_languages
        )
        self.synthesizer = synthesizer or RelaySynthesizer(on_event=self.broadcast)
        self.orchestrator = SessionOrchestrator(
            transcriber=self.transcriber,
            synthesizer=self.synthesizer,
            translator=self.engine,
            top_language=self.config.top_language,
            bottom_language=self.config.bottom_language,
            stop_timeout_s=self.config.transcriber_stop_timeout,
            on_change=self._on_session_change,
        )
        self.subscribers: list[asyncio.Queue] = []

    async def startup(self) -> None:
        logger.info("Starting Parley server...")
        active = self.store.get_active()
        if active is None:
            logger.warning("No translation model selected; phrasebook only until one is")
        else:
            logger.info(f"Active model: {active}")

    async def shutdown(self) -> None:
        logger.info("Shutting down server...")
        for descriptor in self.store.catalog:
            task = self.store.task(descriptor.identifier)
            if task is not None:
                task.cancel()
        await self.engine.unload()

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self.subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self.subscribers:
            self.subscribers.remove(queue)

    def broadcast(self, event: dict) -> int:
        """Queue ``event`` for every connected device; return how many got it."""
        for queue in self.subscribers:
            queue.put_nowait(event)
        return len(self.subscribers)

    def handle_client_message(self, message: dict) -> None:
        """Apply a message sent by the device over the WebSocket."""
        kind = message.get("type")
        if kind == "transcript":
            self._feed(message.get("text", ""), bool(message.get("final", False)))
        elif kind == "spoken":
            self._complete(str(message.get("id", "")))
        else:
            raise InvalidState(f"Unknown message type: {kind}")

    def _feed(self, text: str, final: bool) -> None:
        if not isinstance(self.transcriber, RelayTranscriber):
            raise InvalidState("Transcripts are produced on the server")
        self.transcriber.feed(text, final=final)

    def _complete(self, utterance_id: str) -> bool:
        if not isinstance(self.synthesizer, RelaySynthesizer):
            raise InvalidState("Playback is handled on the server")
        return self.synthesizer.complete(utterance_id)

    def _on_session_change(self, state: SessionState) -> None:
        self.broadcast({"type": "session", "session": state.to_dict()})

    def catalog(self) -> list[dict]:
        active = self.store.get_active()
        entries = []
        for descriptor in self.store.catalog:
            path = self.store.path_for(descriptor)
            entries.append(
                {
                    "identifier": descriptor.identifier,
                    "name": descriptor.name,
                    "size": descriptor.size,
                    "description": descriptor.description,
                    "file_name": descriptor.file_name,
                    "installed": path.is_file(),
                    "active": active is not None and Path(active) == path,
                }
            )
        return entries


# Global server instance
_server: ParleyServer | None = None


def get_server() -> ParleyServer:
    """Get the global server instance."""
    global _server
    if _server is None:
        _server = ParleyServer()
    return _server


def create_app(server: ParleyServer | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    srv = server or get_server()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await srv.startup()
        yield
        await srv.shutdown()

    app = FastAPI(
        title="Parley API",
        description="Face-to-face conversation translation with a local model",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ParleyError)
    async def parley_error_handler(request, exc: ParleyError):
        return JSONResponse(status_code=status_for(exc), content=exc.to_dict())

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "version": __version__}

    @app.get("/languages")
    async def get_languages():
        return {
            "languages": [
                {"tag": tag, "name": language_name(tag), "locale": speech_locale(tag)}
                for tag in srv.config.supported_languages
            ]
        }

    # Session

    @app.get("/session")
    async def get_session():
        return srv.orchestrator.snapshot().to_dict()

    @app.post("/channels/{side}/start")
    async def start_channel(side: ChannelSide):
        await srv.orchestrator.request_start(side)
        return srv.orchestrator.snapshot().to_dict()

    @app.post("/channels/{side}/stop")
    async def stop_channel(side: ChannelSide):
        await srv.orchestrator.request_stop(side)
        return srv.orchestrator.snapshot().to_dict()

    @app.post("/channels/{side}/cancel")
    async def cancel_channel(side: ChannelSide):
        await srv.orchestrator.request_cancel(side)
        return srv.orchestrator.snapshot().to_dict()

    @app.post("/channels/{side}/speak")
    async def speak_channel(side: ChannelSide, request: SpeakRequest | None = None):
        channel = srv.orchestrator.channel(side)
        text = request.text if request and request.text is not None else channel.translation
        language = request.language if request and request.language else channel.language
        await srv.orchestrator.request_speak(side, text, language)
        return srv.orchestrator.snapshot().to_dict()

    @app.put("/channels/{side}/language")
    async def set_channel_language(side: ChannelSide, update: LanguageUpdate):
        srv.orchestrator.set_language(side, update.language)
        return srv.orchestrator.snapshot().to_dict()

    @app.post("/channels/{side}/transcript")
    async def push_transcript(side: ChannelSide, update: TranscriptUpdate):
        if srv.orchestrator.state(side) is not ChannelState.LISTENING:
            raise InvalidState(f"The {side.value} channel is not listening")
        srv._feed(update.text, update.final)
        return srv.orchestrator.channel(side).to_dict()

    @app.post("/swap")
    async def swap():
        srv.orchestrator.swap()
        return srv.orchestrator.snapshot().to_dict()

    @app.post("/synthesis/stop")
    async def stop_synthesis():
        await srv.orchestrator.stop_synthesis()
        return srv.orchestrator.snapshot().to_dict()

    @app.post("/synthesis/{utterance_id}/done")
    async def synthesis_done(utterance_id: str):
        if not srv._complete(utterance_id):
            raise HTTPException(status_code=404, detail=f"No utterance {utterance_id} playing")
        return {"id": utterance_id, "done": True}

    # Models

    @app.get("/models/catalog")
    async def get_catalog():
        return {"models": srv.catalog()}

    @app.get("/models/installed")
    async def get_installed():
        return {"models": [m.to_dict() for m in srv.store.installed()]}

    @app.get("/models/active")
    async def get_active():
        active = srv.store.get_active()
        return {"path": str(active) if active else None}

    @app.put("/models/active")
    async def select_active(selection: ModelSelection):
        path = srv.store.select_active(Path(selection.path))
        return {"path": str(path)}

    @app.delete("/models/installed/{file_name}")
    async def delete_model(file_name: str):
        await asyncio.to_thread(srv.store.delete, srv.store.models_dir / file_name)
        active = srv.store.get_active()
        return {"deleted": file_name, "active": str(active) if active else None}

    @app.post("/models/{identifier}/download")
    async def start_download(identifier: str):
        descriptor = srv.store.find(identifier)
        if descriptor is None:
            raise HTTPException(status_code=404, detail=f"Unknown model: {identifier}")
        task = srv.store.start_download(descriptor)
        return task.to_dict()

    @app.get("/models/{identifier}/download")
    async def get_download(identifier: str):
        task = srv.store.task(identifier) or srv.store.finished_task(identifier)
        if task is None:
            raise HTTPException(status_code=404, detail=f"No download started for {identifier}")
        return task.to_dict()

    @app.delete("/models/{identifier}/download")
    async def cancel_download(identifier: str):
        task = srv.store.task(identifier)
        if task is None:
            raise HTTPException(status_code=404, detail=f"No download running for {identifier}")
        task.cancel()
        return task.to_dict()

    # WebSocket for the device

    @app.websocket("/ws/session")
    async def session_socket(websocket: WebSocket):
        """Push session changes and utterances; receive transcripts and playback acks."""
        await websocket.accept()
        queue = srv.subscribe()

        async def pump():
            while True:
                event = await queue.get()
                await websocket.send_json(event)

        await websocket.send_json(
            {"type": "session", "session": srv.orchestrator.snapshot().to_dict()}
        )
        sender = asyncio.create_task(pump())

        try:
            while True:
                message = await websocket.receive_json()
                try:
                    srv.handle_client_message(message)
                except ParleyError as exc:
                    queue.put_nowait({"type": "error", **exc.to_dict()})
        except WebSocketDisconnect:
            logger.info("WebSocket disconnected")
        finally:
            sender.cancel()
            srv.unsubscribe(queue)

    return app


def main():
    """Run the conversation server."""
    import uvicorn

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
