"""Pydantic request/response models for the REST API.

Every action endpoint answers with :class:`ActionResponse`, the JSON form
of an ``ActionResult``.
"""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, Field


# ===================================================================
# Responses
# ===================================================================


class ActionResponse(BaseModel):
    success: bool
    message: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)


# ===================================================================
# Buildings
# ===================================================================


class ReassignRequest(BaseModel):
    from_id: str
    to_id: str


# ===================================================================
# Combat
# ===================================================================


class TapRequest(BaseModel):
    on_weak_point: bool = False


# ===================================================================
# Grants
# ===================================================================


class BuilderGrantRequest(BaseModel):
    count: int = Field(1, ge=1)


class BoostGrantRequest(BaseModel):
    multiplier: float = Field(..., gt=0)
    duration_ms: float = Field(..., gt=0)
    boost_id: str = "purchase"


class OfflineProgressRequest(BaseModel):
    elapsed_seconds: float = Field(..., ge=0)
