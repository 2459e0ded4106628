import json
from typing import Any, Generic, Mapping, Optional, TypeVar

from sellexa.utils.status import Status

T = TypeVar("T")


class ApiResult(Generic[T]):
    """Uniform ``success``/``data``/``error`` envelope returned by the API modules."""

    def __init__(
        self,
        success: bool = True,
        data: Optional[T] = None,
        error: Optional[str] = None,
        status: Optional[Status] = None,
    ) -> None:
        self.success = success
        self.data = data
        self.error = error
        if status is None:
            status = Status.SUCCESS if success else Status.FAILURE
        self.status = status

    def __bool__(self) -> bool:
        return self.success

    def __repr__(self) -> str:
        if self.success:
            return f"ApiResult(success=True, data={self.data!r})"
        return f"ApiResult(success=False, status={self.status.name}, error={self.error!r})"

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ApiResult":
        """Build an instance from a raw mapping."""

        if not isinstance(payload, Mapping):
            raise TypeError("Result payload must be a mapping")

        if "success" not in payload:
            raise ValueError("Result payload is missing required key: 'success'")

        status = None
        if payload.get("status") is not None:
            try:
                status = Status(payload["status"])
            except ValueError as exc:
                raise ValueError(f"Unknown status value: {payload['status']!r}") from exc

        error_raw = payload.get("error")
        error = error_raw if error_raw is None or isinstance(error_raw, str) else str(error_raw)

        return cls(
            success=bool(payload["success"]),
            data=payload.get("data"),
            error=error,
            status=status,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success, "status": self.status.value}
        if self.success:
            result["data"] = self.data
        else:
            result["error"] = self.error
        return result

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


def create_api_result(data: T) -> ApiResult[T]:
    return ApiResult(success=True, data=data)


def create_api_error(error: str, status: Status = Status.FAILURE) -> ApiResult:
    return ApiResult(success=False, error=error, status=status)
