"""Permission catalog, preset and subset-preview schemas."""

from typing import Any

from pydantic import BaseModel


class ModuleActions(BaseModel):
    module: str
    actions: list[str]


class TaxonomyResponse(BaseModel):
    modules: list[ModuleActions]


class PresetSummary(BaseModel):
    key: str
    name: str
    description: str


class PresetResponse(PresetSummary):
    permissions: dict[str, dict[str, bool]]


class SubsetCheckRequest(BaseModel):
    """Candidate set to preview. ``parent`` defaults to the caller's own set."""
    candidate: dict[str, Any]
    parent: dict[str, Any] | None = None


class SubsetCheckResponse(BaseModel):
    is_valid: bool
    violations: list[str]
