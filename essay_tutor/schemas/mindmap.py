from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional


# ── Request ──────────────────────────────────────────────────────────────────

class MindMapRequest(BaseModel):
    """Request body for mind map generation."""
    topic: str = Field(default="", description="Exam topic to outline, e.g. 元代文人画")


# ── Response ─────────────────────────────────────────────────────────────────

class MindMapNode(BaseModel):
    """A single node in the mind map tree (recursive)."""
    model_config = ConfigDict(frozen=True)

    label: str
    children: Optional[List[MindMapNode]] = []

    @field_validator("children", mode="before")
    @classmethod
    def _null_children_as_leaf(cls, v):
        return [] if v is None else v


class MindMapResponse(BaseModel):
    """Mind map result; `mindMap` is null when no map could be produced."""
    model_config = ConfigDict(populate_by_name=True)

    status: str = "success"
    mind_map: MindMapNode | None = Field(default=None, alias="mindMap")
