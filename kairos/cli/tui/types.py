"""Enums shared between the dispatcher and the Textual UI."""

from __future__ import annotations

from enum import Enum


class ViewID(str, Enum):
    DASHBOARD = "dashboard"
    PROJECT_LIST = "project_list"
    TASK_LIST = "task_list"
    ACTION_MENU = "action_menu"
    RECOMMENDATION = "recommendation"
    FORM = "form"
    DRAFT = "draft"
    HELP_CHAT = "help_chat"


class KeyRoute(str, Enum):
    """Where a key press goes."""

    VIEW = "view"
    COMMAND_BAR = "command_bar"
    FOCUS_COMMAND_BAR = "focus_command_bar"
    BLUR_COMMAND_BAR = "blur_command_bar"
    POP = "pop"
    CANCEL_VIEW = "cancel_view"
    RECOMMEND = "recommend"
    QUIT = "quit"


class OutputLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
