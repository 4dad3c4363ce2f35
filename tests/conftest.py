import io

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from kyc_ocr.api.routes import get_backend_client, get_verification_client
from kyc_ocr.clients.verification import BackendClient, VerificationClient
from kyc_ocr.core.config import get_settings
from kyc_ocr.main import app


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    monkeypatch.setenv("VERIFICATION_API_URL", "http://verify.test")
    monkeypatch.setenv("BACKEND_URL", "http://backend.test")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def upstream():
    """Install mock verification/backend services; returns a dict of recorded requests."""
    calls = {"verify": [], "backend": [], "verify_reply": None, "backend_reply": None}

    def verify_handler(request: httpx.Request) -> httpx.Response:
        calls["verify"].append(request)
        return calls["verify_reply"] or httpx.Response(200, json={"fields_extracted": {}})

    def backend_handler(request: httpx.Request) -> httpx.Response:
        calls["backend"].append(request)
        return calls["backend_reply"] or httpx.Response(200, json={"success": True})

    app.dependency_overrides[get_verification_client] = lambda: VerificationClient(
        "http://verify.test", 5, transport=httpx.MockTransport(verify_handler)
    )
    app.dependency_overrides[get_backend_client] = lambda: BackendClient(
        "http://backend.test", 5, transport=httpx.MockTransport(backend_handler)
    )
    return calls


def make_image(fmt="JPEG", size=(64, 40), color=(200, 30, 30)) -> bytes:
    out = io.BytesIO()
    mode = "RGBA" if fmt == "PNG" else "RGB"
    Image.new(mode, size, color).save(out, format=fmt)
    return out.getvalue()


@pytest.fixture
def jpeg_bytes():
    return make_image()
