"""Error envelope models.

Every error leaves the API as {"error": {"code", "message", "details"}}.
"""

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Body of the error envelope.

    ``details`` carries field-level errors for request validation failures.
    """

    code: str
    message: str
    details: list[dict] | None = None


class ErrorResponse(BaseModel):
    error: ErrorDetail

    @classmethod
    def build(
        cls, code: str, message: str, details: list[dict] | None = None
    ) -> dict:
        """Serialized envelope, ready for a JSONResponse body."""
        return cls(
            error=ErrorDetail(code=code, message=message, details=details)
        ).model_dump()
