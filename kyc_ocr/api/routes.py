"""OCR review API endpoints.

Two groups:
    /ocr/*          : stateless mapping, validation, cleaning and edit helpers
                      used by the review screen.
    /kyc/public/*   : session-scoped capture steps. process-document forwards
                      captured images to the verification service and maps the
                      result; save-ocr validates, cleans and hands the reviewed
                      record to the backend.
"""

import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, Query, UploadFile
from pydantic import ValidationError

from kyc_ocr.clients.verification import BackendClient, UpstreamError, VerificationClient
from kyc_ocr.core.config import Settings, get_settings
from kyc_ocr.extraction.dates import format_for_display, to_ethiopian, to_gregorian
from kyc_ocr.extraction.field_mapper import map_extracted_fields
from kyc_ocr.extraction.id_types import lookup_id_type, to_service_document_type
from kyc_ocr.extraction.processing import capture_filename, generate_request_id, prepare_image, validate_source
from kyc_ocr.extraction.review import apply_edit, clean_ocr_data, validate_ocr_data
from kyc_ocr.extraction.schemas import (
    DateConversion,
    EditRequest,
    ErrorEnvelope,
    MapRequest,
    OCRFieldMapping,
    OCRReviewResponse,
    ProcessDocumentResponse,
    ValidationResult,
)

logger = logging.getLogger("kyc.api")
router = APIRouter()

_ERRORS = {400: {"model": ErrorEnvelope}, 422: {"model": ErrorEnvelope}}


def get_verification_client(settings: Settings = Depends(get_settings)) -> VerificationClient:
    return VerificationClient.from_settings(settings)


def get_backend_client(settings: Settings = Depends(get_settings)) -> BackendClient:
    return BackendClient.from_settings(settings)


def _review(record: OCRFieldMapping) -> OCRReviewResponse:
    return OCRReviewResponse(ocr_data=record, validation=validate_ocr_data(record))


@router.post("/ocr/map", response_model=OCRReviewResponse, response_model_exclude_none=True)
async def map_fields(body: MapRequest):
    """Map a raw OCR payload (over optional fallback values) to the canonical record."""
    record = map_extracted_fields(body.extracted, body.fallback)
    return _review(record)


@router.post("/ocr/validate", response_model=ValidationResult)
async def validate_fields(record: OCRFieldMapping):
    return validate_ocr_data(record)


@router.post("/ocr/clean", response_model=OCRFieldMapping, response_model_exclude_none=True)
async def clean_fields(record: OCRFieldMapping):
    return clean_ocr_data(record)


@router.post("/ocr/edit", response_model=OCRReviewResponse, response_model_exclude_none=True, responses=_ERRORS)
async def edit_field(body: EditRequest):
    try:
        record = apply_edit(body.ocr_data, body.field, body.value)
    except ValueError:
        raise HTTPException(400, "unknown_field")
    return _review(record)


@router.get("/ocr/dates/convert", response_model=DateConversion)
async def convert_date(
    date: str = Query(..., description="YYYY-MM-DD"),
    to: str = Query("gregorian", pattern="^(gregorian|ethiopian)$"),
):
    output = to_gregorian(date) if to == "gregorian" else to_ethiopian(date)
    display_source = output if to == "gregorian" else date
    return DateConversion(input=date, output=output, display=format_for_display(display_source))


def _parse_fallback(raw: Optional[str]) -> Optional[OCRFieldMapping]:
    if not raw or not raw.strip():
        return None
    try:
        return OCRFieldMapping.model_validate(json.loads(raw))
    except (ValueError, ValidationError):
        raise HTTPException(400, "invalid_fallback")


async def _read_capture(upload: UploadFile, side: str):
    raw = await upload.read()
    try:
        validate_source(upload.filename or "", raw)
    except ValueError as ve:
        raise HTTPException(400, str(ve))
    data, media_type = prepare_image(raw)
    return capture_filename(side, media_type, upload.filename), data, media_type


@router.post(
    "/kyc/public/process-document/{session_id}",
    response_model=ProcessDocumentResponse,
    response_model_exclude_none=True,
    responses={**_ERRORS, 502: {"model": ErrorEnvelope}},
)
async def process_document(
    session_id: str,
    id_type: str = Form(..., description="Flow code (ETH_NATIONAL_ID, ...) or service document type"),
    front_image: UploadFile = File(..., description="Front of the ID"),
    back_image: Optional[UploadFile] = File(None, description="Back of the ID"),
    fallback: Optional[str] = Form(None, description="JSON OCR record from an earlier step"),
    client: VerificationClient = Depends(get_verification_client),
):
    rid = generate_request_id()
    document_type = to_service_document_type(id_type)
    id_mapping = lookup_id_type(id_type)
    fallback_record = _parse_fallback(fallback)

    front = await _read_capture(front_image, "front")
    back = None
    if back_image is not None and getattr(back_image, "filename", None):
        back = await _read_capture(back_image, "back")
    elif id_mapping.requires_back:
        logger.info("process_document_rejected request_id=%s session_id=%s id_type=%s reason=back_image_required", rid, session_id, id_mapping.code)
        raise HTTPException(400, "back_image_required")

    try:
        result = await client.process_document(session_id, document_type, front, back)
    except UpstreamError as exc:
        logger.warning("process_document_failed request_id=%s session_id=%s status=%s err=%s", rid, session_id, exc.status_code, exc.message)
        raise HTTPException(502, "verification_service_error")

    fields = result.get("fields_extracted")
    extracted = isinstance(fields, dict) and bool(fields)
    if extracted:
        record = map_extracted_fields(fields, fallback_record)
    else:
        logger.info("process_document_no_fields request_id=%s session_id=%s", rid, session_id)
        record = fallback_record or OCRFieldMapping()

    validation = validate_ocr_data(record)
    logger.info(
        "ocr_mapped request_id=%s session_id=%s id_type=%s document_type=%s extracted=%s valid=%s",
        rid, session_id, id_mapping.name, document_type, extracted, validation.is_valid,
    )
    return ProcessDocumentResponse(
        session_id=session_id,
        document_type=document_type,
        extracted=extracted,
        ocr_data=record,
        validation=validation,
    )


@router.post("/kyc/public/save-ocr/{session_id}", responses=_ERRORS)
async def save_ocr(
    session_id: str,
    token: Optional[str] = Query(None),
    body: Optional[Dict[str, Any]] = Body(None),
    client: BackendClient = Depends(get_backend_client),
):
    """Validate, clean and forward the reviewed record to the backend."""
    if not token:
        raise HTTPException(400, "Session token is required")
    raw = (body or {}).get("ocrData")
    if not raw:
        raise HTTPException(400, "OCR data is required")
    try:
        record = OCRFieldMapping.model_validate(raw)
    except ValidationError:
        raise HTTPException(400, "Invalid OCR data")

    validation = validate_ocr_data(record)
    if not validation.is_valid:
        raise HTTPException(422, {"errors": validation.errors})

    cleaned = clean_ocr_data(record)
    try:
        saved = await client.save_ocr(session_id, token, cleaned.to_payload())
    except UpstreamError as exc:
        logger.warning("save_ocr_failed session_id=%s status=%s err=%s", session_id, exc.status_code, exc.message)
        raise HTTPException(exc.status_code, exc.message)
    logger.info("save_ocr_success session_id=%s", session_id)
    return saved
