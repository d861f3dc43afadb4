"""argparse command tree for ``kairos`` and the handlers behind each command.

The same tree serves the one-shot CLI, the line shell and the TUI command
bar. The parser never exits the process: usage problems surface as
``CommandError``. Building the tree also records a ``CommandSpec`` catalog
used for suggestions and help.
"""

from __future__ import annotations

import argparse
import logging
from functools import lru_cache
from typing import Any, Callable, NoReturn, Optional, Sequence

from kairos.cli import actions, render
from kairos.cli.actions import CommandContext
from kairos.cli.args import parse_date_arg
from kairos.cli.cmdspec import CommandEntry, CommandSpec, FlagEntry
from kairos.cli.resolve import resolve_node, resolve_project, resolve_work_item
from kairos.constants import NODE_KINDS, PROJECT_STATUSES, SUGGESTION_LIMIT, WORK_ITEM_STATUSES
from kairos.core.errors import CommandError, ServiceError, UserInputError
from kairos.core.models import PlanNode, WorkItem, WorkItemStatus

logger = logging.getLogger(__name__)

Handler = Callable[[CommandContext, argparse.Namespace], str]

ENTITY_GROUPS = ("project", "node", "work", "session", "template")

GROUP_SUBCOMMANDS = {
    "project": ("list", "inspect", "add", "update", "archive", "unarchive", "remove", "init", "import", "draft"),
    "node": ("add", "inspect", "update", "remove"),
    "work": ("add", "inspect", "update", "done", "archive", "remove"),
    "session": ("log", "list", "remove"),
    "template": ("list", "show"),
}

DESTRUCTIVE = {
    "project": frozenset({"archive", "remove"}),
    "node": frozenset({"remove"}),
    "work": frozenset({"archive", "remove"}),
    "session": frozenset({"remove"}),
}

MUTATING = frozenset({"import", "add", "update", "init", "archive", "unarchive", "done", "log", "remove"})


class CommandParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of printing and exiting."""

    def error(self, message: str) -> NoReturn:
        raise CommandError(message, self.format_usage().strip())

    def exit(self, status: int = 0, message: Optional[str] = None) -> NoReturn:
        raise CommandError((message or "").strip() or f"{self.prog}: exited with status {status}")


def group_help(group: str) -> str:
    subs = GROUP_SUBCOMMANDS.get(group)
    if subs is None:
        return f"Unknown group: {group}"
    return f"{group} subcommands: {', '.join(subs)}"


def is_destructive(group: str, sub: str) -> bool:
    return sub in DESTRUCTIVE.get(group, frozenset())


# --- handlers ---


def _project_scope(ctx: CommandContext, ns: argparse.Namespace) -> str:
    flag = getattr(ns, "project", None)
    if flag:
        return resolve_project(ctx.services, flag).id
    return ctx.state.active_project_id


def _node(ctx: CommandContext, ns: argparse.Namespace, query: str) -> PlanNode:
    return resolve_node(ctx.services, query.lstrip("#"), _project_scope(ctx, ns))


def _item(ctx: CommandContext, ns: argparse.Namespace, query: str) -> WorkItem:
    return resolve_work_item(ctx.services, query.lstrip("#"), _project_scope(ctx, ns))


def _project_list(ctx: CommandContext, ns: argparse.Namespace) -> str:
    return render.format_projects(ctx.services.projects.list_projects(include_archived=ns.all))


def _project_inspect(ctx: CommandContext, ns: argparse.Namespace) -> str:
    return actions.project_tree(ctx, resolve_project(ctx.services, ns.id))


def _project_add(ctx: CommandContext, ns: argparse.Namespace) -> str:
    start = parse_date_arg(ns.start, "start date")
    due = parse_date_arg(ns.due, "due date") if ns.due else None
    if due is not None and due <= start:
        raise UserInputError("due date must be after the start date")
    project = actions.create_project(ctx, ns.short_id, ns.name, ns.domain, start, due)
    return f"✔ Created project {project.name} [{project.short_id}]"


def _project_update(ctx: CommandContext, ns: argparse.Namespace) -> str:
    project = resolve_project(ctx.services, ns.id)
    changes: dict[str, Any] = {}
    if ns.due is not None:
        changes["target_date"] = None if ns.due.lower() == "none" else parse_date_arg(ns.due, "due date")
    project = actions.update_project(
        ctx.services,
        project,
        name=ns.name,
        domain=ns.domain,
        short_id=ns.short_id,
        status=ns.status,
        **changes,
    )
    ctx.state.project_updated(project)
    return f"✔ Updated project {project.name} [{project.short_id}]"


def _project_archive(ctx: CommandContext, ns: argparse.Namespace) -> str:
    project = resolve_project(ctx.services, ns.id)
    ctx.services.projects.archive(project.id)
    ctx.state.invalidate_projects()
    if ctx.state.active_project_id == project.id:
        ctx.state.clear_project_context()
    return f"✔ Archived project {project.name}"


def _project_unarchive(ctx: CommandContext, ns: argparse.Namespace) -> str:
    project = resolve_project(ctx.services, ns.id)
    ctx.services.projects.unarchive(project.id)
    ctx.state.invalidate_projects()
    return f"✔ Unarchived project {project.name}"


def _project_remove(ctx: CommandContext, ns: argparse.Namespace) -> str:
    project = resolve_project(ctx.services, ns.id)
    ctx.services.projects.delete(project.id)
    ctx.state.invalidate_projects()
    if ctx.state.active_project_id == project.id:
        ctx.state.clear_project_context()
    return f"✔ Removed project {project.name}"


def _project_init(ctx: CommandContext, ns: argparse.Namespace) -> str:
    if ctx.services.templates is None:
        raise ServiceError("template service is not configured")
    start = parse_date_arg(ns.start, "start date")
    due = parse_date_arg(ns.due, "due date") if ns.due else None
    project = ctx.services.templates.init_project(ns.template, ns.name, ns.short_id.upper(), start, due)
    ctx.state.invalidate_projects()
    return f'✔ Initialized project {project.name} [{project.short_id}] from template "{ns.template}"'


def _project_import(ctx: CommandContext, ns: argparse.Namespace) -> str:
    return actions.import_file(ctx, ns.file)


def _node_add(ctx: CommandContext, ns: argparse.Namespace) -> str:
    project = resolve_project(ctx.services, ns.project)
    siblings = ctx.services.nodes.list_by_project(project.id)
    node = PlanNode(
        id=actions.new_id(),
        project_id=project.id,
        title=ns.title,
        kind=ns.kind,
        parent_id=_node(ctx, ns, ns.parent).id if ns.parent else None,
        order_index=ns.order if ns.order is not None else len(siblings) + 1,
    )
    ctx.services.nodes.create(node)
    return f"✔ Created node: {node.title}"


def _node_inspect(ctx: CommandContext, ns: argparse.Namespace) -> str:
    node = _node(ctx, ns, ns.id)
    return render.format_node(node, ctx.services.work_items.list_by_node(node.id))


def _node_update(ctx: CommandContext, ns: argparse.Namespace) -> str:
    node = _node(ctx, ns, ns.id)
    if ns.title is not None:
        node.title = ns.title
    if ns.kind is not None:
        node.kind = ns.kind
    if ns.order is not None:
        node.order_index = ns.order
    ctx.services.nodes.update(node)
    return f"✔ Updated node: {node.title}"


def _node_remove(ctx: CommandContext, ns: argparse.Namespace) -> str:
    node = _node(ctx, ns, ns.id)
    ctx.services.nodes.delete(node.id)
    return f"✔ Removed node {node.title}"


def _work_add(ctx: CommandContext, ns: argparse.Namespace) -> str:
    node = _node(ctx, ns, ns.node)
    item = WorkItem(
        id=actions.new_id(),
        node_id=node.id,
        project_id=node.project_id,
        title=ns.title,
        type=ns.type,
        planned_min=ns.planned_min or 0,
        due_date=parse_date_arg(ns.due, "due date") if ns.due else None,
    )
    ctx.services.work_items.create(item)
    return f"✔ Created: {item.title}"


def _work_inspect(ctx: CommandContext, ns: argparse.Namespace) -> str:
    return render.format_work_item(_item(ctx, ns, ns.id))


def _work_update(ctx: CommandContext, ns: argparse.Namespace) -> str:
    item = _item(ctx, ns, ns.id)
    if ns.title is not None:
        item.title = ns.title
    if ns.type is not None:
        item.type = ns.type
    if ns.status is not None:
        item.status = WorkItemStatus(ns.status)
    if ns.planned_min is not None:
        item.planned_min = ns.planned_min
    ctx.services.work_items.update(item)
    return f"✔ Updated: {item.title}"


def _work_done(ctx: CommandContext, ns: argparse.Namespace) -> str:
    return actions.finish_item(ctx, _item(ctx, ns, ns.id))


def _work_archive(ctx: CommandContext, ns: argparse.Namespace) -> str:
    item = _item(ctx, ns, ns.id)
    ctx.services.work_items.archive(item.id)
    if ctx.state.active_item_id == item.id:
        ctx.state.clear_item_context()
    return f"✔ Archived work item {item.title}"


def _work_remove(ctx: CommandContext, ns: argparse.Namespace) -> str:
    item = _item(ctx, ns, ns.id)
    ctx.services.work_items.delete(item.id)
    if ctx.state.active_item_id == item.id:
        ctx.state.clear_item_context()
    return f"✔ Removed work item {item.title}"


def _session_log(ctx: CommandContext, ns: argparse.Namespace) -> str:
    item = _item(ctx, ns, ns.work_item)
    return actions.log_session(ctx, item, ns.minutes, note=ns.note or "", units_done=ns.units_done or 0)


def _session_list(ctx: CommandContext, ns: argparse.Namespace) -> str:
    if ns.work_item:
        sessions = ctx.services.sessions.list_by_work_item(_item(ctx, ns, ns.work_item).id)
    else:
        sessions = ctx.services.sessions.list_recent(ns.days)
    return render.format_sessions(sessions)


def _session_remove(ctx: CommandContext, ns: argparse.Namespace) -> str:
    ctx.services.sessions.delete(ns.id)
    ctx.state.invalidate_projects()
    return "✔ Removed session"


def _template_list(ctx: CommandContext, ns: argparse.Namespace) -> str:
    if ctx.services.templates is None:
        raise ServiceError("template service is not configured")
    return render.format_templates(ctx.services.templates.list_templates())


def _template_show(ctx: CommandContext, ns: argparse.Namespace) -> str:
    if ctx.services.templates is None:
        raise ServiceError("template service is not configured")
    return render.format_template(ctx.services.templates.get(ns.ref))


def _what_now(ctx: CommandContext, ns: argparse.Namespace) -> str:
    raw = ns.minutes_flag if ns.minutes_flag is not None else ns.minutes
    return actions.what_now(ctx, parse_minutes(raw, ctx.config.shell.default_minutes), ctx.scope())


def _status(ctx: CommandContext, ns: argparse.Namespace) -> str:
    scope = [resolve_project(ctx.services, ns.project).id] if ns.project else ctx.scope()
    return actions.status(ctx, scope, recalc=ns.recalc)


def _replan(ctx: CommandContext, ns: argparse.Namespace) -> str:
    return actions.replan(ctx)


def _explain_now(ctx: CommandContext, ns: argparse.Namespace) -> str:
    raw = ns.minutes_flag if ns.minutes_flag is not None else ns.minutes
    return actions.explain_now(ctx, parse_minutes(raw, ctx.config.shell.default_minutes))


def _explain_why_not(ctx: CommandContext, ns: argparse.Namespace) -> str:
    return actions.explain_why_not(ctx, ns.id)


def _review_weekly(ctx: CommandContext, ns: argparse.Namespace) -> str:
    return actions.review_weekly(ctx)


def parse_minutes(raw: Optional[str], default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        minutes = int(raw)
    except ValueError:
        minutes = 0
    if minutes <= 0:
        raise UserInputError(f'Invalid minutes "{raw}" — expected a positive integer.')
    return minutes


# --- tree construction ---


class _TreeBuilder:
    """Adds parsers and records a catalog entry for every leaf command."""

    def __init__(self) -> None:
        self.root = CommandParser(prog="kairos", add_help=False, description="Personal project planner")
        self._leaves: list[tuple[str, str, _CommandArgs]] = []
        self._root_subs = self.root.add_subparsers(dest="command", metavar="COMMAND", parser_class=CommandParser)

    def group(self, name: str, help: str) -> argparse._SubParsersAction:
        parser = self._root_subs.add_parser(name, help=help, add_help=False)
        return parser.add_subparsers(dest="sub", metavar="SUBCOMMAND", parser_class=CommandParser)

    def command(
        self,
        subs: argparse._SubParsersAction,
        path: str,
        help: str,
        handler: Optional[Handler],
        destructive: bool = False,
    ) -> _CommandArgs:
        name = path.split()[-1]
        parser = subs.add_parser(name, help=help, add_help=False, prog=f"kairos {path}")
        parser.set_defaults(handler=handler, path=path)
        if destructive:
            parser.add_argument("--yes", "-y", "--force", dest="yes", action="store_true", help="skip confirmation")
        args = _CommandArgs(parser)
        self._leaves.append((path, help, args))
        return args

    def top(self, path: str, help: str, handler: Optional[Handler]) -> _CommandArgs:
        return self.command(self._root_subs, path, help, handler)

    def spec(self) -> CommandSpec:
        spec = CommandSpec()
        for path, help, args in self._leaves:
            spec.add(CommandEntry(f"kairos {path}", help, args.flags))
        return spec


class _CommandArgs:
    def __init__(self, parser: CommandParser) -> None:
        self.parser = parser
        self._flags: list[FlagEntry] = []

    @property
    def flags(self) -> tuple[FlagEntry, ...]:
        return tuple(self._flags)

    def positional(self, name: str, help: str = "", **kwargs: Any) -> _CommandArgs:
        self.parser.add_argument(name, help=help, **kwargs)
        return self

    def flag(self, name: str, help: str = "", required: bool = False, **kwargs: Any) -> _CommandArgs:
        self.parser.add_argument(f"--{name}", help=help, required=required, **kwargs)
        default = kwargs.get("default")
        self._flags.append(
            FlagEntry(name, help, default="" if default is None else str(default), required=required)
        )
        return self


def _build() -> tuple[CommandParser, CommandSpec]:
    b = _TreeBuilder()
    dest = {"dest": "short_id"}

    project = b.group("project", "Manage projects")
    b.command(project, "project list", "List projects", _project_list).flag(
        "all", "Include archived projects", action="store_true"
    )
    b.command(project, "project inspect", "Show project details", _project_inspect).positional("id")
    (
        b.command(project, "project add", "Create a new project", _project_add)
        .flag("id", "Short ID, e.g. PHYS01", required=True, **dest)
        .flag("name", "Project name", required=True)
        .flag("domain", "Project domain", required=True)
        .flag("start", "Start date (YYYY-MM-DD)", required=True)
        .flag("due", "Target due date (YYYY-MM-DD)")
    )
    (
        b.command(project, "project update", "Update a project", _project_update)
        .positional("id")
        .flag("id", "New short ID", **dest)
        .flag("name", "Project name")
        .flag("domain", "Project domain")
        .flag("due", "Target due date (YYYY-MM-DD, or 'none' to clear)")
        .flag("status", "Project status", choices=PROJECT_STATUSES)
    )
    b.command(project, "project archive", "Archive a project", _project_archive, destructive=True).positional("id")
    b.command(project, "project unarchive", "Unarchive a project", _project_unarchive).positional("id")
    b.command(project, "project remove", "Remove a project", _project_remove, destructive=True).positional("id")
    (
        b.command(project, "project init", "Initialize a project from a template", _project_init)
        .flag("id", "Short ID, e.g. PHYS01", required=True, **dest)
        .flag("template", "Template name", required=True)
        .flag("name", "Project name", required=True)
        .flag("start", "Start date (YYYY-MM-DD)", required=True)
        .flag("due", "Target due date (YYYY-MM-DD)")
    )
    b.command(project, "project import", "Import a project from a JSON file", _project_import).positional("file")
    b.command(project, "project draft", "Build a project structure with the guided wizard", None).positional(
        "description", nargs="*"
    )

    node = b.group("node", "Manage plan nodes")
    (
        b.command(node, "node add", "Create a new plan node", _node_add)
        .flag("project", "Project ID", required=True)
        .flag("title", "Node title", required=True)
        .flag("kind", "Node kind", required=True, choices=NODE_KINDS)
        .flag("parent", "Parent node ID")
        .flag("order", "Order index", type=int)
    )
    b.command(node, "node inspect", "Show node details", _node_inspect).positional("id").flag(
        "project", "Project context for numeric IDs"
    )
    (
        b.command(node, "node update", "Update a plan node", _node_update)
        .positional("id")
        .flag("title", "Node title")
        .flag("kind", "Node kind", choices=NODE_KINDS)
        .flag("order", "Order index", type=int)
        .flag("project", "Project context for numeric IDs")
    )
    b.command(node, "node remove", "Remove a plan node", _node_remove, destructive=True).positional("id").flag(
        "project", "Project context for numeric IDs"
    )

    work = b.group("work", "Manage work items")
    (
        b.command(work, "work add", "Create a new work item", _work_add)
        .flag("node", "Parent node ID", required=True)
        .flag("title", "Work item title", required=True)
        .flag("type", "Work item type", required=True)
        .flag("planned-min", "Planned duration in minutes", type=int)
        .flag("due", "Due date (YYYY-MM-DD)")
        .flag("project", "Project context for numeric IDs")
    )
    b.command(work, "work inspect", "Show work item details", _work_inspect).positional("id").flag(
        "project", "Project context for numeric IDs"
    )
    (
        b.command(work, "work update", "Update a work item", _work_update)
        .positional("id")
        .flag("title", "Work item title")
        .flag("type", "Work item type")
        .flag("status", "Status", choices=WORK_ITEM_STATUSES)
        .flag("planned-min", "Planned duration in minutes", type=int)
        .flag("project", "Project context for numeric IDs")
    )
    b.command(work, "work done", "Mark a work item as done", _work_done).positional("id").flag(
        "project", "Project context for numeric IDs"
    )
    b.command(work, "work archive", "Archive a work item", _work_archive, destructive=True).positional("id").flag(
        "project", "Project context for numeric IDs"
    )
    b.command(work, "work remove", "Remove a work item", _work_remove, destructive=True).positional("id").flag(
        "project", "Project context for numeric IDs"
    )

    session = b.group("session", "Manage work sessions")
    (
        b.command(session, "session log", "Log a work session", _session_log)
        .flag("work-item", "Work item ID", required=True)
        .flag("minutes", "Session duration in minutes", required=True, type=int)
        .flag("units-done", "Units completed in this session", type=int)
        .flag("note", "Session note")
        .flag("project", "Project context for numeric IDs")
    )
    (
        b.command(session, "session list", "List work sessions", _session_list)
        .flag("work-item", "Filter by work item ID")
        .flag("days", "Number of recent days to show", type=int, default=7)
        .flag("project", "Project context for numeric IDs")
    )
    b.command(session, "session remove", "Remove a session log", _session_remove, destructive=True).positional("id")

    template = b.group("template", "Browse project templates")
    b.command(template, "template list", "List available templates", _template_list)
    b.command(template, "template show", "Show template details", _template_show).positional("ref")

    (
        b.top("what-now", "Get session recommendations for available time", _what_now)
        .positional("minutes", nargs="?")
        .flag("minutes", "Available minutes for the session", dest="minutes_flag")
    )
    (
        b.top("status", "Show project status overview", _status)
        .flag("project", "Scope to a single project ID")
        .flag("recalc", "Force recalculation of risk and progress", action="store_true")
    )
    b.top("replan", "Rebalance project schedules", _replan).flag("strategy", "Rebalancing strategy")

    explain = b.group("explain", "Explain recommendations")
    (
        b.command(explain, "explain now", "Explain the current recommendation", _explain_now)
        .positional("minutes", nargs="?")
        .flag("minutes", "Available minutes", dest="minutes_flag")
    )
    b.command(explain, "explain why-not", "Explain why an item was not recommended", _explain_why_not).positional(
        "id"
    )
    review = b.group("review", "Review progress")
    b.command(review, "review weekly", "Weekly review of logged work", _review_weekly)

    b.top("ask", "Parse natural language into a command", None).positional("text", nargs="+").flag(
        "yes", "Execute write intents without asking", action="store_true"
    )
    b.top("help", "Show commands or answer a question (help chat for a conversation)", None).positional(
        "question", nargs="*"
    )
    b.top("draft", "Build a project structure with the guided wizard", None).positional("description", nargs="*")
    b.top("shell", "Start the interactive line shell", None)
    return b.root, b.spec()


@lru_cache(maxsize=1)
def command_tree() -> tuple[CommandParser, CommandSpec]:
    return _build()


def build_command_spec() -> CommandSpec:
    return command_tree()[1]


def top_level_commands() -> frozenset[str]:
    return frozenset(entry.full_path.split()[1] for entry in build_command_spec().commands)


def parse(tokens: Sequence[str]) -> argparse.Namespace:
    parser, _ = command_tree()
    ns = parser.parse_args(list(tokens))
    if getattr(ns, "path", None) is None:
        raise CommandError(group_help(tokens[0]) if tokens else "a command is required")
    return ns


def run(ctx: CommandContext, tokens: Sequence[str]) -> str:
    """Parse ``tokens`` and run the matching handler."""
    ns = parse(tokens)
    handler: Optional[Handler] = ns.handler
    if handler is None:
        raise CommandError(f"'{ns.path}' needs an interactive session")
    logger.debug("running %s", ns.path)
    return handler(ctx, ns)


def hint_for_missing_flag(message: str, active_project_id: str, active_short_id: str) -> str:
    """Suggest the active project for a missing ``--project``-style flag."""
    if "required" not in message:
        return ""
    for keyword in ("project", "node", "work-item"):
        if keyword in message:
            if active_project_id:
                return f"Hint: active project is {active_short_id} — try adding --{keyword} {active_short_id}"
            return "Hint: set an active project with 'use <id>'"
    return ""


def suggest_alternatives(query: str) -> str:
    matches = build_command_spec().fuzzy_match(query, SUGGESTION_LIMIT)
    if not matches:
        return ""
    lines = ["Did you mean:"]
    lines.extend(f"  {entry.full_path}  {entry.short}" for entry in matches)
    return "\n".join(lines)
