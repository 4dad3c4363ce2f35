import json

import httpx

from kyc_ocr.core.config import get_settings

from conftest import make_image

VALID_OCR = {
    "fullName": "  Abebe Kebede ",
    "dateOfBirth": "1990-05-15",
    "dateOfExpiry": "2030-12-31",
    "gender": "Male",
    "idNumber": " 123456789 ",
    "issuingAuthority": "Government of Ethiopia",
}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_map_endpoint_returns_camel_case_record(client):
    res = client.post("/ocr/map", json={
        "extracted": {"name": "John Doe", "date_of_birth": "2013-04-15 E.C.", "sex": "M"},
        "fallback": {"idNumber": "ID-1"},
    })
    assert res.status_code == 200
    body = res.json()
    assert body["ocrData"]["fullName"] == "John Doe"
    assert body["ocrData"]["dateOfBirth"] == "2020-04-15"
    assert body["ocrData"]["dateOfBirthEthiopian"] == "2013-04-15"
    assert body["ocrData"]["gender"] == "M"
    assert body["ocrData"]["idNumber"] == "ID-1"
    assert "sex" not in body["ocrData"]
    assert body["validation"]["isValid"] is False
    assert body["validation"]["errors"] == ["Expiry date is required", "Issuing authority is required"]


def test_validate_endpoint(client):
    res = client.post("/ocr/validate", json={})
    assert res.status_code == 200
    assert res.json()["isValid"] is False
    assert len(res.json()["errors"]) == 6


def test_clean_endpoint(client):
    res = client.post("/ocr/clean", json=VALID_OCR)
    assert res.status_code == 200
    assert res.json()["fullName"] == "Abebe Kebede"
    assert res.json()["idNumber"] == "123456789"
    assert "documentId" not in res.json()


def test_edit_endpoint(client):
    res = client.post("/ocr/edit", json={"ocrData": VALID_OCR, "field": "dateOfIssue", "value": "2021-06-01"})
    assert res.status_code == 200
    assert res.json()["ocrData"]["dateOfIssueEthiopian"] == "2014-06-01"

    res = client.post("/ocr/edit", json={"ocrData": VALID_OCR, "field": "nickname", "value": "x"})
    assert res.status_code == 400
    assert res.json()["detail"] == "unknown_field"


def test_date_convert_endpoint(client):
    res = client.get("/ocr/dates/convert", params={"date": "2013-04-15"})
    assert res.json() == {"input": "2013-04-15", "output": "2020-04-15", "display": "April 15, 2020"}

    res = client.get("/ocr/dates/convert", params={"date": "2022-09-23", "to": "ethiopian"})
    assert res.json()["output"] == "2015-09-23"

    assert client.get("/ocr/dates/convert", params={"date": "x", "to": "julian"}).status_code == 422


def test_save_ocr_requires_token(client, upstream):
    res = client.post("/kyc/public/save-ocr/sess-1", json={"ocrData": VALID_OCR})
    assert res.status_code == 400
    assert res.json()["detail"] == "Session token is required"
    assert upstream["backend"] == []


def test_save_ocr_requires_data(client, upstream):
    res = client.post("/kyc/public/save-ocr/sess-1?token=tok", json={})
    assert res.status_code == 400
    assert res.json()["detail"] == "OCR data is required"


def test_save_ocr_rejects_invalid_record(client, upstream):
    res = client.post("/kyc/public/save-ocr/sess-1?token=tok", json={"ocrData": {"fullName": "A"}})
    assert res.status_code == 422
    assert "Gender is required" in res.json()["detail"]["errors"]
    assert upstream["backend"] == []


def test_save_ocr_forwards_cleaned_record(client, upstream):
    upstream["backend_reply"] = httpx.Response(200, json={"success": True, "id": 7})

    res = client.post("/kyc/public/save-ocr/sess-1?token=tok", json={"ocrData": VALID_OCR})

    assert res.status_code == 200
    assert res.json() == {"success": True, "id": 7}
    (request,) = upstream["backend"]
    assert request.url.path == "/client/tenant/kyc/public/save-ocr/sess-1"
    assert request.url.params["token"] == "tok"
    sent = json.loads(request.content)
    assert sent["sessionId"] == "sess-1"
    assert sent["sessionToken"] == "tok"
    assert sent["ocrData"]["fullName"] == "Abebe Kebede"
    assert sent["ocrData"]["idNumber"] == "123456789"
    assert "sex" not in sent["ocrData"]


def test_save_ocr_relays_backend_error(client, upstream):
    upstream["backend_reply"] = httpx.Response(404, json={"error": "Session not found"})

    res = client.post("/kyc/public/save-ocr/sess-1?token=tok", json={"ocrData": VALID_OCR})

    assert res.status_code == 404
    assert res.json()["detail"] == "Session not found"


def _capture_files(back=True):
    files = {"front_image": ("front.jpg", make_image(), "image/jpeg")}
    if back:
        files["back_image"] = ("back.png", make_image("PNG"), "image/png")
    return files


def test_process_document_maps_extracted_fields(client, upstream):
    upstream["verify_reply"] = httpx.Response(200, json={
        "session_id": "sess-9",
        "fields_extracted": {
            "full_name": "Abebe Kebede",
            "date_of_birth": "1982-09-11 E.C.",
            "expiry_date": "2030-01-01",
            "gender": "Male",
            "id_number": "FIN-1",
            "issuing_country": "Ethiopia",
            "document_status": {"is_valid": True},
        },
    })

    res = client.post(
        "/kyc/public/process-document/sess-9",
        data={"id_type": "ETH_DRIVERS_LICENSE"},
        files=_capture_files(),
    )

    assert res.status_code == 200
    body = res.json()
    assert body["sessionId"] == "sess-9"
    assert body["documentType"] == "driver_license"
    assert body["extracted"] is True
    assert body["ocrData"]["dateOfBirth"] == "1989-09-11"
    assert body["ocrData"]["dateOfBirthEthiopian"] == "1982-09-11"
    assert body["ocrData"]["documentStatus"] == {
        "is_valid": True, "is_older_than_18": True, "is_document_accepted": True,
    }
    assert body["validation"] == {"isValid": True, "errors": []}

    (request,) = upstream["verify"]
    assert request.url.path == "/api/v1/public/id_verification/process-document"
    content = request.content
    assert b'name="session_id"' in content and b"sess-9" in content
    assert b'name="document_type"' in content and b"driver_license" in content
    assert b'name="front_image"' in content
    assert b'name="back_image"' in content
    assert b'filename="front_id.jpg"' in content
    assert b'filename="back_id.png"' in content


def test_process_document_without_fields_returns_fallback(client, upstream):
    fallback = json.dumps({"fullName": "Previous", "idNumber": "X"})
    res = client.post(
        "/kyc/public/process-document/sess-2",
        data={"id_type": "passport", "fallback": fallback},
        files=_capture_files(back=False),
    )
    assert res.status_code == 200
    body = res.json()
    assert body["extracted"] is False
    assert body["ocrData"]["fullName"] == "Previous"
    assert body["documentType"] == "passport"
    (request,) = upstream["verify"]
    assert b'name="back_image"' not in request.content


def test_process_document_rejects_bad_upload(client, upstream):
    res = client.post(
        "/kyc/public/process-document/sess-3",
        data={"id_type": "ETH_NATIONAL_ID"},
        files={"front_image": ("front.pdf", b"%PDF-1.4", "application/pdf")},
    )
    assert res.status_code == 400
    assert res.json()["detail"] == "unsupported_extension"
    assert upstream["verify"] == []


def test_process_document_rejects_bad_fallback(client, upstream):
    res = client.post(
        "/kyc/public/process-document/sess-3",
        data={"id_type": "ETH_NATIONAL_ID", "fallback": "{not json"},
        files=_capture_files(back=False),
    )
    assert res.status_code == 400
    assert res.json()["detail"] == "invalid_fallback"


def test_process_document_upstream_failure(client, upstream):
    upstream["verify_reply"] = httpx.Response(500, text="boom")
    res = client.post(
        "/kyc/public/process-document/sess-4",
        data={"id_type": "ETH_NATIONAL_ID"},
        files=_capture_files(),
    )
    assert res.status_code == 502
    assert res.json()["detail"] == "verification_service_error"


def test_process_document_requires_back_for_two_sided_ids(client, upstream):
    res = client.post(
        "/kyc/public/process-document/sess-5",
        data={"id_type": "ETH_NATIONAL_ID"},
        files=_capture_files(back=False),
    )
    assert res.status_code == 400
    assert res.json()["detail"] == "back_image_required"
    assert upstream["verify"] == []


def test_process_document_single_sided_id_without_back(client, upstream):
    res = client.post(
        "/kyc/public/process-document/sess-5",
        data={"id_type": "ETH_STUDENT_ID"},
        files=_capture_files(back=False),
    )
    assert res.status_code == 200
    assert res.json()["documentType"] == "national_id"
    assert len(upstream["verify"]) == 1


def test_process_document_renames_converted_captures(client, upstream, monkeypatch):
    monkeypatch.setenv("CONVERT_SIZE_BYTES", "10")
    get_settings.cache_clear()

    res = client.post(
        "/kyc/public/process-document/sess-6",
        data={"id_type": "ETH_NATIONAL_ID"},
        files=_capture_files(),
    )

    assert res.status_code == 200
    (request,) = upstream["verify"]
    content = request.content
    assert b'filename="back_id.jpg"' in content
    assert b'filename="back.png"' not in content
    assert b"Content-Type: image/jpeg" in content
    assert b"Content-Type: image/png" not in content
