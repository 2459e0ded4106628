from typing import Any, Optional


class BackendError(Exception):
    """Error reported by the backend (PostgREST, RPC or Auth) or by the transport."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Any = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details
        self.hint = hint

    @classmethod
    def from_payload(cls, status_code: int, payload: Any) -> "BackendError":
        """Build an error from a PostgREST/GoTrue error body."""
        if not isinstance(payload, dict):
            return cls(f"Backend returned HTTP {status_code}", status_code=status_code)

        message = (
            payload.get("message")
            or payload.get("msg")
            or payload.get("error_description")
            or payload.get("error")
            or f"Backend returned HTTP {status_code}"
        )
        code = payload.get("code")
        return cls(
            str(message),
            status_code=status_code,
            code=str(code) if code is not None else None,
            details=payload.get("details"),
            hint=payload.get("hint"),
        )

    def __str__(self) -> str:
        return self.message
