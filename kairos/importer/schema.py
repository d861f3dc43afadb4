"""Import schema: the single hand-off artifact to the import collaborator.

Dates are kept as ``YYYY-MM-DD`` strings so drafts produced by hand, by the
structure wizard, or by the draft conversation all share one wire format.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class SessionPolicy(BaseModel):
    min_session_min: Optional[int] = None
    max_session_min: Optional[int] = None
    default_session_min: Optional[int] = None
    splittable: Optional[bool] = None


class ProjectImport(BaseModel):
    short_id: str
    name: str
    domain: str = ""
    start_date: str
    target_date: Optional[str] = None


class DefaultsImport(BaseModel):
    duration_mode: Optional[str] = None
    session_policy: Optional[SessionPolicy] = None


class NodeImport(BaseModel):
    ref: str
    parent_ref: Optional[str] = None
    title: str
    kind: str
    order: int = 0
    due_date: Optional[str] = None
    not_before: Optional[str] = None
    not_after: Optional[str] = None
    planned_min_budget: Optional[int] = None


class WorkItemImport(BaseModel):
    ref: str
    node_ref: str
    title: str
    type: str
    status: Optional[str] = None
    duration_mode: Optional[str] = None
    planned_min: Optional[int] = None
    logged_min: Optional[int] = None
    estimate_confidence: Optional[float] = None
    session_policy: Optional[SessionPolicy] = None
    due_date: Optional[str] = None
    not_before: Optional[str] = None


class DependencyImport(BaseModel):
    predecessor_ref: str
    successor_ref: str


class ImportSchema(BaseModel):
    model_config = ConfigDict(extra="ignore")

    project: ProjectImport
    defaults: Optional[DefaultsImport] = None
    nodes: List[NodeImport] = []
    work_items: List[WorkItemImport] = []
    dependencies: List[DependencyImport] = []

    def to_json(self) -> str:
        return self.model_dump_json(indent=2, exclude_none=True)


def load_import_file(path: Path) -> ImportSchema:
    """Read an import JSON file into a schema (structural errors raise ``ValueError``)."""
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    return ImportSchema.model_validate(raw)
