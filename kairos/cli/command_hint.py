"""Map a parsed intent to the equivalent explicit shell command."""

from __future__ import annotations

import shlex
from typing import Mapping, Optional

from kairos.cli.args import int_arg, string_arg
from kairos.constants import DEFAULT_AVAILABLE_MIN
from kairos.intelligence.contracts import ArgValue, IntentName, ParsedIntent


def _q(value: str) -> str:
    return shlex.quote(value)


def _flag(args: Mapping[str, ArgValue], key: str, flag: str, placeholder: Optional[str], quote: bool = False) -> str:
    value = string_arg(args, key)
    if value is not None:
        return f"--{flag} {_q(value) if quote else value}"
    if placeholder is None:
        return ""
    return f"--{flag} {placeholder}"


def _join(*parts: str) -> str:
    return " ".join(part for part in parts if part)


def _id_command(args: Mapping[str, ArgValue], key: str, verb: str, placeholder: str) -> str:
    return f"{verb} {string_arg(args, key) or placeholder}"


def command_hint(intent: Optional[ParsedIntent]) -> str:
    """Return the shell command for ``intent``, or ``""`` when there is no equivalent."""
    if intent is None:
        return ""
    args = intent.arguments
    name = intent.intent

    if name == IntentName.WHAT_NOW:
        return f"what-now --minutes {int_arg(args, 'available_min', DEFAULT_AVAILABLE_MIN)}"
    if name == IntentName.STATUS:
        return "status"
    if name == IntentName.REPLAN:
        return _join("replan", _flag(args, "strategy", "strategy", None))
    if name == IntentName.PROJECT_ADD:
        return _join(
            "project add --id <SHORT_ID>",
            _flag(args, "name", "name", "<NAME>", quote=True),
            _flag(args, "domain", "domain", "<DOMAIN>", quote=True),
            _flag(args, "start_date", "start", "<YYYY-MM-DD>"),
            _flag(args, "target_date", "due", None),
        )
    if name == IntentName.PROJECT_IMPORT:
        return f"project import {string_arg(args, 'file_path') or '<FILE>'}"
    if name == IntentName.PROJECT_UPDATE:
        return _join(
            _id_command(args, "project_id", "project update", "<PROJECT_ID>"),
            _flag(args, "name", "name", None, quote=True),
            _flag(args, "target_date", "due", None),
            _flag(args, "status", "status", None),
        )
    if name == IntentName.PROJECT_ARCHIVE:
        return _id_command(args, "project_id", "project archive", "<PROJECT_ID>")
    if name == IntentName.PROJECT_REMOVE:
        return _id_command(args, "project_id", "project remove", "<PROJECT_ID>")
    if name == IntentName.NODE_ADD:
        return _join(
            "node add",
            _flag(args, "project_id", "project", "<PROJECT_ID>"),
            _flag(args, "title", "title", "<TITLE>", quote=True),
            _flag(args, "kind", "kind", "<KIND>"),
        )
    if name == IntentName.NODE_UPDATE:
        return _join(
            _id_command(args, "node_id", "node update", "<NODE_ID>"),
            _flag(args, "title", "title", None, quote=True),
            _flag(args, "kind", "kind", None),
        )
    if name == IntentName.NODE_REMOVE:
        return _id_command(args, "node_id", "node remove", "<NODE_ID>")
    if name == IntentName.WORK_ADD:
        planned = int_arg(args, "planned_min", 0)
        return _join(
            "work add",
            _flag(args, "node_id", "node", "<NODE_ID>"),
            _flag(args, "title", "title", "<TITLE>", quote=True),
            _flag(args, "type", "type", "<TYPE>"),
            f"--planned-min {planned}" if planned > 0 else "",
        )
    if name == IntentName.WORK_UPDATE:
        planned = int_arg(args, "planned_min", 0)
        return _join(
            _id_command(args, "work_item_id", "work update", "<WORK_ITEM_ID>"),
            _flag(args, "title", "title", None, quote=True),
            _flag(args, "status", "status", None),
            f"--planned-min {planned}" if planned > 0 else "",
        )
    if name == IntentName.WORK_DONE:
        return _id_command(args, "work_item_id", "work done", "<WORK_ITEM_ID>")
    if name == IntentName.WORK_REMOVE:
        return _id_command(args, "work_item_id", "work remove", "<WORK_ITEM_ID>")
    if name == IntentName.SESSION_LOG:
        minutes = int_arg(args, "minutes", 0)
        return _join(
            "session log",
            _flag(args, "work_item_id", "work-item", "<WORK_ITEM_ID>"),
            f"--minutes {minutes}" if minutes > 0 else "--minutes <MINUTES>",
            _flag(args, "note", "note", None, quote=True),
        )
    if name == IntentName.SESSION_REMOVE:
        return _id_command(args, "session_id", "session remove", "<SESSION_ID>")
    if name == IntentName.TEMPLATE_LIST:
        return "template list"
    if name == IntentName.TEMPLATE_SHOW:
        return _id_command(args, "template_id", "template show", "<TEMPLATE_REF>")
    if name == IntentName.PROJECT_INIT_FROM_TEMPLATE:
        return _join(
            "project init --id <SHORT_ID>",
            _flag(args, "template_id", "template", "<TEMPLATE_REF>"),
            _flag(args, "project_name", "name", "<NAME>", quote=True),
            _flag(args, "start_date", "start", "<YYYY-MM-DD>"),
            _flag(args, "target_date", "due", None),
        )
    if name == IntentName.EXPLAIN_NOW:
        minutes = int_arg(args, "minutes", 0)
        return _join("explain now", f"--minutes {minutes}" if minutes > 0 else "")
    if name == IntentName.EXPLAIN_WHY_NOT:
        return _join(
            "explain why-not",
            string_arg(args, "work_item_id") or string_arg(args, "project_id") or "",
        )
    if name == IntentName.REVIEW_WEEKLY:
        return "review weekly"
    return ""
