"""ID type codes shared between the capture flow and the verification service.

The capture flow offers Ethiopian document codes (ETH_PASSPORT, ...); the
verification service only understands four document types. Several flow
codes are processed as the closest service type.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

DEFAULT_DOCUMENT_TYPE = "national_id"


@dataclass(frozen=True)
class IdTypeMapping:
    code: str
    document_type: str  # verification service type
    name: str
    requires_back: bool = True


ID_TYPE_MAPPING: Dict[str, IdTypeMapping] = {
    m.code: m
    for m in (
        IdTypeMapping("ETH_PASSPORT", "passport", "Ethiopian Passport", requires_back=False),
        IdTypeMapping("ETH_NATIONAL_ID", "national_id", "Ethiopian National ID"),
        IdTypeMapping("ETH_DRIVERS_LICENSE", "driver_license", "Ethiopian Driver's License"),
        IdTypeMapping("ETH_RESIDENCE_PERMIT", "resident_id", "Ethiopian Residence Permit"),
        IdTypeMapping("ETH_STUDENT_ID", "national_id", "Ethiopian Student ID", requires_back=False),
        IdTypeMapping("ETH_WORK_PERMIT", "resident_id", "Ethiopian Work Permit"),
        IdTypeMapping("ETH_BIRTH_CERTIFICATE", "national_id", "Ethiopian Birth Certificate", requires_back=False),
        IdTypeMapping("ETH_MARRIAGE_CERTIFICATE", "national_id", "Ethiopian Marriage Certificate", requires_back=False),
    )
}

SERVICE_DOCUMENT_TYPES = ("passport", "national_id", "driver_license", "resident_id")


def to_service_document_type(code: Optional[str]) -> str:
    """Resolve a flow code (or an already-service type) to a service document type."""
    if not code:
        return DEFAULT_DOCUMENT_TYPE
    key = code.strip()
    if key.lower() in SERVICE_DOCUMENT_TYPES:
        return key.lower()
    mapping = ID_TYPE_MAPPING.get(key.upper())
    return mapping.document_type if mapping else DEFAULT_DOCUMENT_TYPE


def flow_codes_for(document_type: str) -> List[str]:
    return [m.code for m in ID_TYPE_MAPPING.values() if m.document_type == document_type]


def best_flow_code(document_type: str, preferred: Optional[str] = None) -> Optional[str]:
    """Pick the flow code for a service type, honouring ``preferred`` when it matches."""
    codes = flow_codes_for(document_type)
    if not codes:
        return None
    if preferred and preferred in codes:
        return preferred
    return codes[0]


def lookup_id_type(code: Optional[str]) -> IdTypeMapping:
    """Return the capture mapping for a flow code or a service document type.

    Service types ("passport") and unknown codes resolve to the primary flow
    code of their service type, so the result is never None.
    """
    key = (code or "").strip().upper()
    mapping = ID_TYPE_MAPPING.get(key)
    if mapping:
        return mapping
    return ID_TYPE_MAPPING[best_flow_code(to_service_document_type(code))]
