"""Tests for the conversation server API."""

import pytest
from fakes import FakeRuntime, FakeSynthesizer, Gate
from fastapi.testclient import TestClient

from parley.errors import DownloadCancelled, DownloadFailed
from parley.streaming import ParleyServer, create_app
from parley.streaming.server import status_for


@pytest.fixture
def server(parley_config, store):
    """Server with a fake model runtime and a speaker that returns at once."""
    return ParleyServer(
        config=parley_config,
        store=store,
        runtime=FakeRuntime(),
        synthesizer=FakeSynthesizer(),
    )


@pytest.fixture
def client(server):
    with TestClient(create_app(server)) as client:
        yield client


class TestHealth:
    """Tests for informational endpoints."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_languages(self, client):
        """Test the language list carries names and speech locales."""
        languages = client.get("/languages").json()["languages"]

        assert {"tag": "es", "name": "Spanish", "locale": "es-ES"} in languages
        assert len(languages) == 12


class TestSessionEndpoints:
    """Tests for driving the session over HTTP."""

    def test_listen_translate_cycle(self, client, server):
        """Test start, device transcript and stop translate into the other side."""
        session = client.post("/channels/top/start").json()
        assert session["top"]["state"] == "listening"
        assert session["busy"] is False

        channel = client.post(
            "/channels/top/transcript", json={"text": "hello", "final": True}
        ).json()
        assert channel["partial"] == "hello"

        session = client.post("/channels/top/stop").json()
        assert session["top"]["state"] == "idle"
        assert session["top"]["transcript"] == "hello"
        assert session["bottom"]["translation"] == "Hola"

        client.post("/channels/bottom/speak")
        assert server.synthesizer.spoken == [("Hola", "es-ES")]

    def test_busy(self, client):
        """Test a second channel cannot start while one listens."""
        client.post("/channels/top/start")

        response = client.post("/channels/bottom/start")

        assert response.status_code == 409
        assert response.json()["code"] == "BUSY"
        assert client.get("/session").json()["bottom"]["state"] == "idle"

        client.post("/channels/top/cancel")
        assert client.get("/session").json()["top"]["state"] == "idle"

    def test_invalid_state(self, client):
        """Test stopping or feeding an idle channel is refused."""
        response = client.post("/channels/top/stop")
        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_STATE"

        response = client.post("/channels/bottom/transcript", json={"text": "hola"})
        assert response.status_code == 409

    def test_unknown_side(self, client):
        assert client.post("/channels/left/start").status_code == 422

    def test_untranslatable_without_model(self, client):
        """Test a phrase outside the phrasebook reports the missing model."""
        client.post("/channels/top/start")
        client.post("/channels/top/transcript", json={"text": "tell me a story", "final": True})

        response = client.post("/channels/top/stop")

        assert response.status_code == 412
        assert response.json()["code"] == "NO_MODEL_CONFIGURED"
        assert client.get("/session").json()["top"]["state"] == "idle"

    def test_speak_explicit_text(self, client, server):
        """Test speaking given text in a given language."""
        client.post("/channels/top/speak", json={"text": "Good morning", "language": "en"})

        assert server.synthesizer.spoken == [("Good morning", "en-US")]

    def test_swap_and_language(self, client):
        """Test swapping sides and changing a language."""
        session = client.post("/swap").json()
        assert session["top"]["language"] == "es"
        assert session["bottom"]["language"] == "en"

        session = client.put("/channels/bottom/language", json={"language": "de"}).json()
        assert session["bottom"]["language"] == "de"

    def test_done_for_unknown_utterance(self, client):
        """Test playback acks need a relay synthesizer."""
        response = client.post("/synthesis/abc/done")

        assert response.status_code == 409


class TestDeviceRelay:
    """Tests for the server's default device-backed speech."""

    @pytest.fixture
    def relay_client(self, parley_config, store):
        server = ParleyServer(config=parley_config, store=store, runtime=FakeRuntime())
        with TestClient(create_app(server)) as client:
            yield client

    def test_speak_without_device(self, relay_client):
        """Test speaking with no device connected fails instead of hanging."""
        response = relay_client.post("/channels/top/speak", json={"text": "Hello"})

        assert response.status_code == 502
        assert response.json()["code"] == "SYNTHESIS_FAILED"

        session = relay_client.get("/session").json()
        assert session["synthesizing"] is False
        assert session["top"]["state"] == "idle"
        assert relay_client.post("/swap").status_code == 200


class TestModelEndpoints:
    """Tests for model management over HTTP."""

    def test_catalog(self, client):
        models = client.get("/models/catalog").json()["models"]

        assert len(models) == 3
        assert not any(m["installed"] for m in models)

    def test_select_and_delete(self, client, model_file):
        """Test selecting an installed model and deleting it again."""
        response = client.put("/models/active", json={"path": str(model_file)})
        assert response.status_code == 200
        assert client.get("/models/active").json()["path"] == str(model_file)

        models = client.get("/models/catalog").json()["models"]
        assert models[0]["installed"] and models[0]["active"]
        assert len(client.get("/models/installed").json()["models"]) == 1

        result = client.delete(f"/models/installed/{model_file.name}").json()
        assert result["active"] is None
        assert not model_file.exists()

    def test_select_missing(self, client, models_dir):
        response = client.put("/models/active", json={"path": str(models_dir / "x.gguf")})

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_INSTALLED"

    def test_download(self, client, store, descriptor, transfer):
        """Test a download started over HTTP installs and selects the model."""
        gate = Gate(at_chunk=1)
        transfer.on_chunk = gate

        response = client.post(f"/models/{descriptor.identifier}/download")
        assert response.status_code == 200
        assert response.json()["identifier"] == descriptor.identifier

        assert gate.reached.wait(timeout=5)
        task = store.task(descriptor.identifier)
        gate.release.set()
        path = task.wait(timeout=5)

        assert client.get("/models/active").json()["path"] == str(path)
        result = client.get(f"/models/{descriptor.identifier}/download").json()
        assert result["status"] == "completed"
        assert result["fraction"] == 1.0

    def test_failed_download_is_reported(self, client, store, descriptor, transfer):
        """Test the outcome of a failed download stays readable over HTTP."""
        transfer.status = 500

        client.post(f"/models/{descriptor.identifier}/download")
        task = store.task(descriptor.identifier) or store.finished_task(descriptor.identifier)
        with pytest.raises(DownloadFailed):
            task.wait(timeout=5)

        response = client.get(f"/models/{descriptor.identifier}/download")
        assert response.status_code == 200
        result = response.json()
        assert result["status"] == "failed"
        assert result["error"]["code"] == "DOWNLOAD_FAILED"
        assert "500" in result["error"]["message"]

    def test_cancel_download(self, client, store, descriptor, transfer):
        """Test a running download can be observed and cancelled."""
        gate = Gate(at_chunk=1)
        transfer.on_chunk = gate

        client.post(f"/models/{descriptor.identifier}/download")
        assert gate.reached.wait(timeout=5)
        task = store.task(descriptor.identifier)

        progress = client.get(f"/models/{descriptor.identifier}/download").json()
        assert progress["status"] == "in_progress"
        assert progress["bytes_written"] == 100

        client.delete(f"/models/{descriptor.identifier}/download")
        gate.release.set()
        with pytest.raises(DownloadCancelled):
            task.wait(timeout=5)

        result = client.get(f"/models/{descriptor.identifier}/download").json()
        assert result["status"] == "cancelled"
        assert result["error"]["code"] == "DOWNLOAD_CANCELLED"
        assert client.delete(f"/models/{descriptor.identifier}/download").status_code == 404
        assert client.get("/models/active").json()["path"] is None

    def test_unknown_model(self, client):
        assert client.post("/models/gpt-5/download").status_code == 404


class TestWebSocket:
    """Tests for the device WebSocket."""

    def test_initial_session_and_errors(self, client):
        """Test the socket opens with a snapshot and reports bad messages."""
        with client.websocket_connect("/ws/session") as ws:
            first = ws.receive_json()
            assert first["type"] == "session"
            assert first["session"]["top"]["state"] == "idle"

            ws.send_json({"type": "transcript", "text": "hello"})
            error = ws.receive_json()
            assert error["type"] == "error"
            assert error["code"] == "INVALID_STATE"

    def test_transcript_over_socket(self, client):
        """Test recognized text sent by the device reaches the listening channel."""
        with client.websocket_connect("/ws/session") as ws:
            ws.receive_json()
            client.post("/channels/bottom/start")
            ws.send_json({"type": "transcript", "text": "gracias", "final": True})

            for _ in range(10):
                event = ws.receive_json()
                if event["session"]["bottom"]["partial"] == "gracias":
                    break
            else:
                pytest.fail("transcript never reached the session")

        session = client.post("/channels/bottom/stop").json()
        assert session["top"]["translation"] == "Thank you"


def test_status_mapping():
    """Test subclasses map before their parents."""
    from parley.errors import NoModelConfigured, TranslationFailed

    assert status_for(NoModelConfigured()) == 412
    assert status_for(TranslationFailed()) == 502
