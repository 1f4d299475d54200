from typing import Any, Optional


class ServiceResult:
    """Outcome of a multi-step write: data on success, messages otherwise."""

    def __init__(
        self,
        success: bool,
        data: Any = None,
        errors: Optional[list[str]] = None,
        warnings: Optional[list[str]] = None,
    ):
        self.success = success
        self.data = data
        self.errors = errors or []
        self.warnings = warnings or []

    @classmethod
    def ok(cls, data: Any = None, warnings: Optional[list[str]] = None) -> "ServiceResult":
        return cls(True, data=data, warnings=warnings)

    @classmethod
    def fail(cls, *errors: str, warnings: Optional[list[str]] = None) -> "ServiceResult":
        return cls(False, errors=list(errors), warnings=warnings)

    def __bool__(self) -> bool:
        return self.success

    def __repr__(self) -> str:
        return f"ServiceResult(success={self.success}, errors={self.errors}, warnings={self.warnings})"
