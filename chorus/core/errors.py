from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ErrorDetail:
    code: str
    message: str


class ChorusError(ValueError):
    default_code = "invalid_request"

    def __init__(self, message: str, code: str = "") -> None:
        normalized = _normalize_code(code or self.default_code)
        clean_message = message.strip() or "unspecified error"
        self.code = normalized
        self.message = clean_message
        super().__init__(clean_message)

    def as_detail(self) -> ErrorDetail:
        return ErrorDetail(code=self.code, message=self.message)


class ConfigurationError(ChorusError):
    """Secret or data documents are unusable; the process must not serve."""

    default_code = "configuration_error"


class ValidationError(ChorusError):
    """Per-request input problem, reported back to the caller."""

    default_code = "invalid_request"


class InternalError(ChorusError):
    default_code = "internal_error"


class EmptyThemeError(ConfigurationError, InternalError):
    """A theme resolved to zero usable candidates after lexicon filtering."""

    default_code = "empty_theme"


def _normalize_code(code: str) -> str:
    lowered = code.strip().lower()
    if not lowered:
        return "invalid_request"
    out = []
    for ch in lowered:
        if ch.isalnum() or ch == "_":
            out.append(ch)
        elif ch in ("-", " ", "."):
            out.append("_")
    normalized = "".join(out).strip("_")
    return normalized or "invalid_request"


def error_detail_from_exception(
    exc: BaseException,
    *,
    default_code: str = "internal_error",
    default_message: str = "internal error",
) -> ErrorDetail:
    if isinstance(exc, ChorusError):
        return exc.as_detail()
    message = str(exc).strip() or default_message
    return ErrorDetail(code=_normalize_code(default_code), message=message)


def error_payload(code: str, message: str) -> dict[str, object]:
    detail = ErrorDetail(code=_normalize_code(code), message=message.strip() or "unspecified error")
    return {"error": {"code": detail.code, "message": detail.message}}


def error_payload_from_exception(
    exc: BaseException,
    *,
    default_code: str = "internal_error",
    default_message: str = "internal error",
) -> dict[str, object]:
    detail = error_detail_from_exception(exc, default_code=default_code, default_message=default_message)
    return {"error": {"code": detail.code, "message": detail.message}}


def format_error_text(
    exc: BaseException,
    *,
    default_code: str = "internal_error",
    default_message: str = "internal error",
) -> str:
    detail = error_detail_from_exception(exc, default_code=default_code, default_message=default_message)
    return f"{detail.code}: {detail.message}"


__all__ = [
    "ErrorDetail",
    "ChorusError",
    "ConfigurationError",
    "ValidationError",
    "InternalError",
    "EmptyThemeError",
    "error_detail_from_exception",
    "error_payload",
    "error_payload_from_exception",
    "format_error_text",
]
