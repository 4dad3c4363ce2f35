"""HTTP clients for the services this app sits between.

VerificationClient : external document/OCR service (process-document).
BackendClient      : tenant backend storing reviewed OCR data per session.

Both wrap httpx.AsyncClient per call and raise UpstreamError on transport
failures or non-2xx replies so routes can map them to HTTP responses.
"""

import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from kyc_ocr.core.config import Settings

logger = logging.getLogger("kyc.clients")

ImagePart = Tuple[str, bytes, str]  # (filename, content, media type)


class UpstreamError(Exception):
    """Upstream service failed or answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _error_message(resp: httpx.Response, default: str) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or default
    if isinstance(body, dict):
        return str(body.get("error") or body.get("detail") or default)
    return default


class _BaseClient:
    def __init__(self, base_url: str, timeout: float, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)


class VerificationClient(_BaseClient):
    PROCESS_DOCUMENT_PATH = "/api/v1/public/id_verification/process-document"

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        return cls(settings.VERIFICATION_API_URL, settings.REQUEST_TIMEOUT, transport)

    async def process_document(
        self,
        session_id: str,
        document_type: str,
        front: ImagePart,
        back: Optional[ImagePart] = None,
    ) -> Dict[str, Any]:
        """Send captured images for OCR and return the service's JSON reply."""
        files = {"front_image": front}
        if back is not None:
            files["back_image"] = back
        data = {"session_id": session_id, "document_type": document_type}
        try:
            async with self._client() as client:
                resp = await client.post(self.PROCESS_DOCUMENT_PATH, data=data, files=files)
        except httpx.HTTPError as exc:
            logger.warning("verification_transport_error session_id=%s err=%s", session_id, exc)
            raise UpstreamError(502, "verification_service_unreachable") from exc
        if resp.status_code != 200:
            logger.warning("verification_error session_id=%s status=%s body=%s", session_id, resp.status_code, resp.text[:200])
            raise UpstreamError(resp.status_code, _error_message(resp, "verification_service_error"))
        try:
            body = resp.json()
        except ValueError as exc:
            raise UpstreamError(502, "verification_service_bad_response") from exc
        if not isinstance(body, dict):
            raise UpstreamError(502, "verification_service_bad_response")
        return body


class BackendClient(_BaseClient):
    SAVE_OCR_PATH = "/client/tenant/kyc/public/save-ocr/{session_id}"

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        return cls(settings.BACKEND_URL, settings.REQUEST_TIMEOUT, transport)

    async def save_ocr(self, session_id: str, token: str, ocr_data: Dict[str, Any]) -> Any:
        """Persist reviewed OCR data on the session; returns the backend's JSON."""
        payload = {"ocrData": ocr_data, "sessionId": session_id, "sessionToken": token}
        path = self.SAVE_OCR_PATH.format(session_id=session_id)
        try:
            async with self._client() as client:
                resp = await client.post(path, params={"token": token}, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("backend_transport_error session_id=%s err=%s", session_id, exc)
            raise UpstreamError(502, "Failed to save OCR data") from exc
        if not resp.is_success:
            logger.warning("backend_save_ocr_error session_id=%s status=%s", session_id, resp.status_code)
            raise UpstreamError(resp.status_code, _error_message(resp, "Failed to save OCR data"))
        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamError(502, "Failed to save OCR data") from exc
