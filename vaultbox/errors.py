from fastapi import HTTPException
from typing import Optional, Dict, Any

def raise_vault_error(
    code: str,
    status_code: int,
    message: str,
    details: Optional[Dict[str, Any]] = None
) -> None:
    """Raise a standardized vault HTTPException.

    Args:
        code: Error code (AUTH_REQUIRED, NOT_FOUND, FORBIDDEN, etc.)
        status_code: HTTP Status Code (400, 401, 403, 404)
        message: Human readable message
        details: Optional extra details
    """
    error_body: Dict[str, Any] = {
        "code": code,
        "message": message
    }
    if details:
        error_body["details"] = details

    raise HTTPException(status_code=status_code, detail={"error": error_body})
