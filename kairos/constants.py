"""Constants shared across the kairos session engine."""

APP_NAME = "kairos"

# Time budget used when a command or intent does not name one
DEFAULT_AVAILABLE_MIN = 60
DEFAULT_LOG_MIN = 60
DEFAULT_PLANNED_MIN = 60

# Shell / TUI
SHELL_HISTORY_LIMIT = 500
PROJECT_CACHE_TTL_S = 5.0
CHROME_ROWS = 5  # header, breadcrumb, output, command bar, footer
SUGGESTION_LIMIT = 3

DATE_FORMAT = "%Y-%m-%d"

# Flags that bypass destructive-command confirmation
FORCE_FLAGS = frozenset({"--yes", "-y", "--force"})

CANCEL_WORDS = frozenset({"/quit", "/cancel", "/q"})

PROJECT_STATUSES = ("active", "paused", "done", "archived")
NODE_KINDS = ("module", "week", "book", "stage", "section", "assessment", "generic")
WIZARD_NODE_KINDS = ("module", "week", "section", "stage", "assessment", "generic")
SPECIAL_NODE_KINDS = ("assessment", "generic")
WORK_ITEM_TYPES = ("reading", "practice", "review", "assignment", "task")
WORK_ITEM_STATUSES = ("todo", "in_progress", "done", "skipped", "archived")
DURATION_MODES = ("fixed", "estimate", "derived")
