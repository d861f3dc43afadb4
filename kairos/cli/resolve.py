"""Resolve user-typed identifiers (short codes, ids, prefixes, seq numbers)."""

from __future__ import annotations

from typing import Optional

from kairos.core.errors import AmbiguousMatchError, NotFoundError, UserInputError
from kairos.core.models import PlanNode, Project, WorkItem
from kairos.core.ports import Services


def match_project(projects: list[Project], query: str) -> Project:
    """Pick one project for ``query``.

    Order: exact short id (case-insensitive), exact id, unique id prefix.
    Never guesses between several prefix matches.
    """
    if not query:
        raise UserInputError("project ID is required")

    lowered = query.lower()
    for project in projects:
        if project.short_id.lower() == lowered:
            return project
    for project in projects:
        if project.id == query:
            return project

    matches = [project for project in projects if project.id.startswith(query)]
    if not matches:
        raise NotFoundError(f'project not found: "{query}"')
    if len(matches) > 1:
        raise AmbiguousMatchError("project", query, len(matches))
    return matches[0]


def resolve_project(services: Services, query: str) -> Project:
    return match_project(services.projects.list_projects(include_archived=True), query)


def _parse_seq(value: str) -> Optional[int]:
    try:
        seq = int(value)
    except ValueError:
        return None
    return seq if seq > 0 else None


def resolve_node(services: Services, query: str, project_id: str) -> PlanNode:
    seq = _parse_seq(query)
    if seq is None:
        return services.nodes.get_by_id(query)
    if not project_id:
        raise UserInputError(
            f"numeric ID #{seq} requires project context (use --project flag or shell 'use' command)"
        )
    for node in services.nodes.list_by_project(project_id):
        if node.seq == seq:
            return node
    raise NotFoundError(f"node #{seq} not found in project")


def resolve_work_item(services: Services, query: str, project_id: str) -> WorkItem:
    seq = _parse_seq(query)
    if seq is None:
        return services.work_items.get_by_id(query)
    if not project_id:
        raise UserInputError(
            f"numeric ID #{seq} requires project context (use --project flag or shell 'use' command)"
        )
    for item in services.work_items.list_by_project(project_id):
        if item.seq == seq:
            return item

    # A node shown collapsed with a single item answers to the node's seq too.
    for node in services.nodes.list_by_project(project_id):
        if node.seq == seq:
            items = services.work_items.list_by_node(node.id)
            if len(items) == 1:
                return items[0]
    raise NotFoundError(f"work item #{seq} not found in project")
