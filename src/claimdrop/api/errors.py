from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from claimdrop.runtime.errors import ClaimError

_CLAIM_STATUS = {
    "restricted_caller": 403,
    "claim_not_started": 425,
    "already_claimed": 409,
    "max_supply_reached": 409,
}


@dataclass(eq=False)
class ApiError(Exception):
    status_code: int
    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> Dict[str, Any]:
        return {"ok": False, "error": {"code": self.code, "message": self.message, "details": self.details}}

    @staticmethod
    def bad_request(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(400, code, message, details or {})

    @staticmethod
    def not_found(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(404, code, message, details or {})

    @staticmethod
    def internal(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(500, code, message, details or {})

    @staticmethod
    def from_claim_error(e: ClaimError) -> "ApiError":
        details = {k: (str(v) if isinstance(v, int) and not isinstance(v, bool) else v) for k, v in e.details.items()}
        return ApiError(_CLAIM_STATUS.get(e.code, 400), e.code, e.reason, details)
