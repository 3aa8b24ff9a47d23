from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class OrderCloudError(RuntimeError):
    """Base exception for OrderCloud API failures."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        errors: Optional[List[Dict[str, Any]]] = None,
        response_body: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.errors = errors or []
        self.response_body = response_body

    @property
    def detail(self) -> str:
        """Remote error codes and messages, or the exception text."""
        if not self.errors:
            return str(self)
        return "; ".join(
            f"{e.get('ErrorCode', '?')}: {e.get('Message', '')}" for e in self.errors
        )


class OrderCloudNotFoundError(OrderCloudError):
    """Resource not found (404). Drives the create path."""
    pass


class OrderCloudAuthError(OrderCloudError):
    """Authentication failed (401/403)."""
    pass


class ConfigurationError(Exception):
    """The OrderCloud client policy is incomplete; the run cannot start."""
    pass


class Severity(str, Enum):
    INFO = "Info"
    ERROR = "Error"


@dataclass(frozen=True)
class RunMessage:
    """A diagnostic recorded when an entity branch stops early."""

    severity: Severity
    code: str
    text: str
    entity_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Severity": self.severity.value,
            "Code": self.code,
            "Text": self.text,
            "EntityId": self.entity_id,
        }


class ExportAbort(Exception):
    """
    Stops the current entity branch.

    INFO aborts are expected stops (skipped or already-counted failures);
    ERROR aborts make the orchestrator halt the stages that follow.
    """

    def __init__(
        self,
        severity: Severity,
        code: str,
        message: str,
        entity_id: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.severity = severity
        self.code = code
        self.message = message
        self.entity_id = entity_id

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def to_message(self) -> RunMessage:
        return RunMessage(self.severity, self.code, self.message, self.entity_id)

    @classmethod
    def info(cls, code: str, message: str, entity_id: Optional[str] = None) -> "ExportAbort":
        return cls(Severity.INFO, code, message, entity_id)

    @classmethod
    def error(cls, code: str, message: str, entity_id: Optional[str] = None) -> "ExportAbort":
        return cls(Severity.ERROR, code, message, entity_id)
