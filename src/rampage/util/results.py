"""Tagged results for player actions.

Actions never raise for expected failures (no workers available,
unaffordable upgrade, unknown id). They return an ``ActionResult`` and
the caller decides whether to surface the message.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a mutating operation.

    Attributes:
        success: Whether the state changed.
        message: Human-readable reason on failure, short summary on success.
        data: Optional payload (new level, cost paid, damage dealt, ...).
    """

    success: bool
    message: str = ""
    data: dict[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.success

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "message": self.message, "data": dict(self.data)}


def ok(message: str = "", **data: Any) -> ActionResult:
    return ActionResult(True, message, data)


def fail(message: str, **data: Any) -> ActionResult:
    return ActionResult(False, message, data)
