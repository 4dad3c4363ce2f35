"""Mapping layer converting raw OCR payloads -> OCRFieldMapping.

Why separate module?:
    The verification service names its keys inconsistently across document
    types (name / full_name / fullName, dob / birth_date, ...). Keeping the
    synonym chains in tables means adding a new synonym is a one-line change
    and each chain can be tested on its own.

Flows handled:
    - Plain fields: first provided source key wins, then the fallback record.
    - Dates: values carrying an Ethiopian marker are extracted and shifted to
      Gregorian, filling both the Gregorian field and its *_ethiopian sibling;
      anything else is normalized to YYYY-MM-DD.
    - gender / sex: sex is only recorded when it differs from the resolved gender.
    - document_status: optimistic defaults merged under the reported flags.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from kyc_ocr.core.config import get_settings
from kyc_ocr.extraction.dates import (
    extract_ethiopian_date,
    format_for_input,
    has_ethiopian_marker,
    to_gregorian,
)
from kyc_ocr.extraction.schemas import DocumentStatus, OCRFieldMapping

logger = logging.getLogger("kyc.ocr")

# canonical attribute -> source keys, highest priority first
FIELD_SOURCES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("full_name", ("full_name", "name", "fullName")),
    ("full_name_amharic", ("full_name_amharic", "name_amharic", "amharic_name")),
    ("gender", ("gender", "sex")),
    ("id_number", ("id_number", "document_number", "passport_number", "identity_number", "personal_number")),
    ("document_id", ("document_id", "id")),
    ("document_type", ("document_type", "type")),
    ("issuing_authority", ("issuing_authority", "issuing_country", "authority", "issuer")),
)

# gregorian attribute -> (ethiopian sibling attribute, source keys)
DATE_SOURCES: Tuple[Tuple[str, str, Tuple[str, ...]], ...] = (
    ("date_of_birth", "date_of_birth_ethiopian", ("date_of_birth", "birth_date", "dob", "birthdate")),
    ("date_of_issue", "date_of_issue_ethiopian", ("date_of_issue", "issue_date", "issued_date")),
    ("date_of_expiry", "date_of_expiry_ethiopian", ("date_of_expiry", "expiry_date", "expiration_date", "expires", "valid_until")),
)

# Flags missing from document_status default to True.
DEFAULT_DOCUMENT_STATUS: Dict[str, bool] = {
    "is_valid": True,
    "is_older_than_18": True,
    "is_document_accepted": True,
}

_FLAG_STRINGS = {"true": True, "false": False, "1": True, "0": False, "yes": True, "no": False}


def _as_text(value: Any) -> Optional[str]:
    """Return value as a string if it counts as provided, else None."""
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str) or value == "":
        return None
    return value


def first_provided(extracted: Mapping[str, Any], keys: Tuple[str, ...]) -> Optional[str]:
    for key in keys:
        text = _as_text(extracted.get(key))
        if text is not None:
            return text
    return None


def _joined_name(extracted: Mapping[str, Any]) -> Optional[str]:
    parts = [p for p in (_as_text(extracted.get("given_name")), _as_text(extracted.get("surname"))) if p]
    return " ".join(parts) if parts else None


def _as_flag(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in _FLAG_STRINGS:
        return _FLAG_STRINGS[value.strip().lower()]
    return default


def map_document_status(raw: Mapping[str, Any]) -> DocumentStatus:
    merged = {
        key: _as_flag(raw.get(key), default)
        for key, default in DEFAULT_DOCUMENT_STATUS.items()
    }
    return DocumentStatus(**merged)


def map_date(raw: str) -> Tuple[str, Optional[str]]:
    """Return (gregorian, ethiopian) for a raw OCR date string.

    ethiopian is None when the raw value carries no Ethiopian marker.
    """
    if has_ethiopian_marker(raw):
        ethiopian = extract_ethiopian_date(raw)
        return to_gregorian(ethiopian), ethiopian
    return format_for_input(raw), None


def map_extracted_fields(
    extracted: Any,
    fallback: Optional[OCRFieldMapping] = None,
) -> OCRFieldMapping:
    """Build a canonical record from raw OCR fields layered over ``fallback``.

    Fields the payload does not provide keep their fallback values. Missing
    keys, None and "" all count as not provided; the function never raises on
    payload shape.
    """
    settings = get_settings()
    if not isinstance(extracted, Mapping):
        logger.warning("ocr_payload_not_mapping type=%s", type(extracted).__name__)
        extracted = {}

    base = fallback.model_dump() if fallback is not None else {}
    mapped = OCRFieldMapping(**base)

    for attr, keys in FIELD_SOURCES:
        value = first_provided(extracted, keys)
        if value is None and attr == "full_name":
            value = _joined_name(extracted)
        if value is not None:
            setattr(mapped, attr, value)

    for attr, ethiopian_attr, keys in DATE_SOURCES:
        raw = first_provided(extracted, keys)
        if raw is None:
            continue
        gregorian, ethiopian = map_date(raw)
        setattr(mapped, attr, gregorian)
        if ethiopian is not None:
            setattr(mapped, ethiopian_attr, ethiopian)
        if settings.DEBUG_EXTRACTION:
            logger.debug("date_mapped field=%s raw=%r gregorian=%s ethiopian=%s", attr, raw, gregorian, ethiopian)

    sex = _as_text(extracted.get("sex"))
    if sex is not None and sex != mapped.gender:
        mapped.sex = sex

    status = extracted.get("document_status")
    if isinstance(status, Mapping):
        mapped.document_status = map_document_status(status)

    if settings.DEBUG_EXTRACTION:
        logger.debug(
            "ocr_fields_mapped keys=%s fallback=%s",
            sorted(k for k in extracted.keys() if isinstance(k, str)),
            fallback is not None,
        )
    return mapped
