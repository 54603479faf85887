from typing import Any

from fastapi import HTTPException
from app.constants.error_codes import ErrorCode


def error_content(
    message: Any,
    error_code: ErrorCode,
    details: Any = None,
) -> dict:
    return {
        "success": False,
        "message": message,
        "error_code": error_code,
        "details": details,
    }


class AppException(HTTPException):
    """
    Business rule failure raised where it is detected and returned to the
    caller unchanged. No retries happen anywhere below the router.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: ErrorCode,
        details: dict | None = None,
    ):
        super().__init__(status_code=status_code, detail=message)
        self.error_code = error_code
        self.details = details

    @property
    def message(self) -> str:
        return self.detail

    def to_content(self) -> dict:
        return error_content(self.detail, self.error_code, self.details)

    def __repr__(self):
        return f"<AppException {self.status_code} {self.error_code.value}: {self.detail}>"
