"""Review-step helpers: validation, cleaning and single-field edits."""

from typing import Dict, List

from pydantic.alias_generators import to_camel

from kyc_ocr.extraction.dates import parse_date, to_ethiopian
from kyc_ocr.extraction.schemas import OCRFieldMapping, ValidationResult

TRIMMED_FIELDS = (
    "full_name",
    "full_name_amharic",
    "gender",
    "id_number",
    "document_type",
    "issuing_authority",
    "document_id",
    "sex",
)

# gregorian date field -> derived ethiopian sibling
ETHIOPIAN_SIBLINGS: Dict[str, str] = {
    "date_of_birth": "date_of_birth_ethiopian",
    "date_of_issue": "date_of_issue_ethiopian",
    "date_of_expiry": "date_of_expiry_ethiopian",
}

_EDITABLE: Dict[str, str] = {}
for _name in OCRFieldMapping.model_fields:
    if _name != "document_status":
        _EDITABLE[_name] = _name
        _EDITABLE[to_camel(_name)] = _name


def _blank(value) -> bool:
    return not value or not str(value).strip()


def validate_ocr_data(record: OCRFieldMapping) -> ValidationResult:
    """Check the six required fields; every check runs and reports on its own."""
    errors: List[str] = []

    if _blank(record.full_name):
        errors.append("Full name is required")

    if not record.date_of_birth:
        errors.append("Date of birth is required")
    elif parse_date(record.date_of_birth) is None:
        errors.append("Invalid date of birth format")

    if not record.date_of_expiry:
        errors.append("Expiry date is required")
    elif parse_date(record.date_of_expiry) is None:
        errors.append("Invalid expiry date format")

    if _blank(record.gender):
        errors.append("Gender is required")

    if _blank(record.id_number):
        errors.append("ID number is required")

    if _blank(record.issuing_authority):
        errors.append("Issuing authority is required")

    return ValidationResult(is_valid=not errors, errors=errors)


def clean_ocr_data(record: OCRFieldMapping) -> OCRFieldMapping:
    """Return a copy with text fields stripped; None optionals stay None."""
    updates = {}
    for name in TRIMMED_FIELDS:
        value = getattr(record, name)
        if value is not None:
            updates[name] = value.strip()
    return record.model_copy(update=updates, deep=True)


def apply_edit(record: OCRFieldMapping, field: str, value: str) -> OCRFieldMapping:
    """Apply one review-screen edit and return the updated copy.

    ``field`` may be the attribute name or its camelCase alias. Setting a
    Gregorian date also regenerates its Ethiopian sibling.
    """
    name = _EDITABLE.get(field)
    if name is None:
        raise ValueError(f"unknown_field: {field}")

    updates = {name: value}
    sibling = ETHIOPIAN_SIBLINGS.get(name)
    if sibling and value:
        updates[sibling] = to_ethiopian(value)
    return record.model_copy(update=updates, deep=True)
