"""Pydantic models for the OCR review record and API payloads.

Layers / roles:
    DocumentStatus     : Verification service verdict flags attached to a document.
    OCRFieldMapping    : Canonical record built from raw OCR output, edited by the
                         applicant on the review screen and saved per session.
    ValidationResult   : Outcome of required-field checks on an OCRFieldMapping.
    Map/Edit/Save*     : Request and response bodies for the HTTP layer.
    ErrorEnvelope      : Error body shape documented in OpenAPI responses.

JSON uses the camelCase keys the capture flow and backend already exchange
(fullName, dateOfBirthEthiopian, ...). Python code uses snake_case attributes;
both spellings are accepted on input.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentStatus(BaseModel):
    """Flags reported by the verification service (snake_case on the wire)."""

    is_valid: bool = True
    is_older_than_18: bool = True
    is_document_accepted: bool = True


class OCRFieldMapping(CamelModel):
    """Canonical OCR record.

    Required fields default to "" so a blank record can be built and then
    reported on by the validator. Optional fields stay None until a source
    provides them; None fields are dropped when serialized.
    Dates are ``YYYY-MM-DD`` strings; the *_ethiopian variants are derived
    and never validated.
    """

    full_name: str = ""
    full_name_amharic: Optional[str] = None
    date_of_birth: str = ""
    date_of_birth_ethiopian: Optional[str] = None
    date_of_issue: Optional[str] = None
    date_of_issue_ethiopian: Optional[str] = None
    date_of_expiry: str = ""
    date_of_expiry_ethiopian: Optional[str] = None
    gender: str = ""
    id_number: str = ""
    document_type: Optional[str] = None
    issuing_authority: str = ""
    document_id: Optional[str] = None
    sex: Optional[str] = None  # only when distinct from gender
    document_status: Optional[DocumentStatus] = None

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase keys and unset optionals removed."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ValidationResult(CamelModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)


class MapRequest(BaseModel):
    extracted: Dict[str, Any] = Field(default_factory=dict, description="Raw OCR engine fields")
    fallback: Optional[OCRFieldMapping] = Field(None, description="Values from an earlier capture step")


class OCRReviewResponse(CamelModel):
    ocr_data: OCRFieldMapping
    validation: ValidationResult


class EditRequest(CamelModel):
    ocr_data: OCRFieldMapping
    field: str
    value: str = ""


class ProcessDocumentResponse(CamelModel):
    session_id: str
    document_type: str
    extracted: bool
    ocr_data: OCRFieldMapping
    validation: ValidationResult


class DateConversion(BaseModel):
    input: str
    output: str
    display: str


class ErrorEnvelope(BaseModel):
    """Uniform error body returned on failure (FastAPI ``detail`` convention)."""

    detail: Any
