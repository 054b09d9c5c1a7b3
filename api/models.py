"""Pydantic request/response models for the bubbles API."""

from pydantic import BaseModel, ConfigDict, Field


# ── Request models ──────────────────────────────────────


class CreateProjectRequest(BaseModel):
    name: str


class AddPairsRequest(BaseModel):
    """One "left -> center -> right" submission; blank fields are skipped."""

    left: str = ""
    center: str = ""
    right: str = ""


class RenameRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    to: str


class FlipRequest(BaseModel):
    bubble: str


# ── Response models ─────────────────────────────────────


class ProjectResponse(BaseModel):
    id: int
    name: str


class EdgeResponse(BaseModel):
    left: str
    right: str


class ActivityResponse(BaseModel):
    name: str
    state: str | None = None


class GraphResponse(BaseModel):
    project: ProjectResponse
    edges: list[EdgeResponse]
    activities: list[ActivityResponse]
    vertical: bool
    source: str
    output: str | None = None
    error: str | None = None


class AddPairsResponse(BaseModel):
    inserted: list[EdgeResponse]


class RemoveEdgeResponse(BaseModel):
    removed: bool


class RenameResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    to: str
    renamed: int
    merged: int
    states: int


class DeleteActivityResponse(BaseModel):
    activity: str
    removed: int


class FlipResponse(BaseModel):
    bubble: str
    state: str


class DeleteProjectResponse(BaseModel):
    id: int
    pairs: int
    states: int
