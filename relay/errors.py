from __future__ import annotations

from typing import Any


class ProxyError(RuntimeError):
    """A classified failure rendered as the uniform error envelope."""

    kind = "internal_error"
    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.code = code

    def envelope(self) -> dict[str, Any]:
        return error_envelope(self.message, self.kind, self.code)


class ConfigurationError(ProxyError):
    kind = "configuration_error"
    status_code = 500


class UpstreamAPIError(ProxyError):
    kind = "api_error"

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message, status_code=status_code, code=status_code)


class UpstreamTimeout(ProxyError):
    kind = "timeout_error"
    status_code = 504

    def __init__(self, timeout: float) -> None:
        super().__init__(
            f"Request timed out after {timeout:g} seconds", code="timeout"
        )


def error_envelope(
    message: str, kind: str, code: str | int | None = None
) -> dict[str, Any]:
    error: dict[str, Any] = {"message": message, "type": kind}
    if code is not None:
        error["code"] = code
    return {"error": error}


def upstream_error_message(body: Any) -> str:
    """Best-effort message from an upstream error body."""
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if body.get("detail"):
            return str(body["detail"])
    return "API request failed"
