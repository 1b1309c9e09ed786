"""Catalog of named operations and the aliases that pre-bind their inputs."""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from stackctl.config import Mode


@dataclass(frozen=True)
class Operation:
    """A base operation.

    ``handler`` names a ``cmd_*`` method on CommandDispatcher. The flags say
    which invocation inputs the operation consumes; anything else supplied is
    ignored with a warning.
    """
    name: str
    help: str
    section: str
    handler: str
    subcommand: Tuple[str, ...] = ()
    extra_args: bool = False
    trailing: bool = False
    service: bool = False


@dataclass(frozen=True)
class Alias:
    """An operation with some inputs fixed. Unbound inputs pass through."""
    name: str
    target: str
    help: str
    section: str
    mode: Optional[Mode] = None
    service: Optional[str] = None
    extra_args: Optional[Tuple[str, ...]] = None


DETACHED_BUILD = ("--build", "-d")

# Section order for help output
SECTIONS = ["Docker", "Development", "Production", "Database", "Backend", "Cleanup", "Utilities"]

_OPERATIONS = [
    # Configuration-scoped
    Operation("up", "Start services", "Docker", "compose", ("up",), extra_args=True, trailing=True),
    Operation("down", "Stop services", "Docker", "compose", ("down",), extra_args=True, trailing=True),
    Operation("build", "Build images", "Docker", "compose", ("build",), extra_args=True, trailing=True),
    Operation("logs", "View logs for SERVICE", "Docker", "compose", ("logs",), extra_args=True, service=True),
    Operation("restart", "Restart services", "Docker", "compose", ("restart",), trailing=True),
    Operation("shell", "Open shell in SERVICE container", "Docker", "shell", service=True),
    Operation("ps", "List service status", "Docker", "compose", ("ps",)),
    # Database
    Operation("db-reset", "Reset MongoDB database", "Database", "db_reset"),
    Operation("db-backup", "Backup MongoDB database", "Database", "db_backup"),
    Operation("db-restore", "Restore database (use: stackctl --file backup/file.archive db-restore)",
              "Database", "db_restore"),
    Operation("db-list-volumes", "List MongoDB volumes", "Database", "db_list_volumes"),
    Operation("mongo-shell", "Open MongoDB shell", "Database", "mongo_shell"),
    # Backend project
    Operation("backend-build", "Compile the backend (npm run build)", "Backend", "npm", ("run", "build")),
    Operation("backend-install", "Install backend dependencies (npm install)", "Backend", "npm", ("install",)),
    Operation("backend-type-check", "Type-check the backend (npm run type-check)", "Backend", "npm",
              ("run", "type-check")),
    Operation("backend-dev", "Run the backend dev server (npm run dev)", "Backend", "npm", ("run", "dev")),
    # Cleanup
    Operation("clean", "Remove containers and networks (both modes)", "Cleanup", "clean"),
    Operation("clean-all", "Remove everything including volumes and images (IRREVERSIBLE)",
              "Cleanup", "clean_all"),
    Operation("clean-volumes", "Remove unused volumes (IRREVERSIBLE)", "Cleanup", "clean_volumes"),
    # Utilities
    Operation("health", "Check service health", "Utilities", "health"),
    Operation("help", "Show this help", "Utilities", "help"),
]

_ALIASES = [
    Alias("dev-up", "up", "Start development environment", "Development",
          mode=Mode.DEVELOPMENT, extra_args=DETACHED_BUILD),
    Alias("dev-down", "down", "Stop development environment", "Development", mode=Mode.DEVELOPMENT),
    Alias("dev-build", "build", "Build development images", "Development", mode=Mode.DEVELOPMENT),
    Alias("dev-logs", "logs", "View development logs", "Development", mode=Mode.DEVELOPMENT),
    Alias("dev-restart", "restart", "Restart development services", "Development", mode=Mode.DEVELOPMENT),
    Alias("dev-shell", "shell", "Open shell in backend container", "Development",
          mode=Mode.DEVELOPMENT, service="backend"),
    Alias("dev-ps", "ps", "List development service status", "Development", mode=Mode.DEVELOPMENT),
    Alias("prod-up", "up", "Start production environment", "Production",
          mode=Mode.PRODUCTION, extra_args=DETACHED_BUILD),
    Alias("prod-down", "down", "Stop production environment", "Production", mode=Mode.PRODUCTION),
    Alias("prod-build", "build", "Build production images", "Production", mode=Mode.PRODUCTION),
    Alias("prod-logs", "logs", "View production logs", "Production", mode=Mode.PRODUCTION),
    Alias("prod-restart", "restart", "Restart production services", "Production", mode=Mode.PRODUCTION),
    Alias("backend-shell", "shell", "Open shell in backend container", "Docker", service="backend"),
    Alias("gateway-shell", "shell", "Open shell in gateway container", "Docker", service="gateway"),
    Alias("status", "ps", "Show service status", "Utilities"),
]

OPERATIONS: Dict[str, Operation] = {op.name: op for op in _OPERATIONS}
ALIASES: Dict[str, Alias] = {alias.name: alias for alias in _ALIASES}


def format_help() -> str:
    """Static catalog of every operation and alias, grouped by section."""
    entries = list(_OPERATIONS) + list(_ALIASES)
    width = max(len(e.name) for e in entries) + 2
    lines = [
        "Usage: stackctl [--mode MODE] [--service NAME] [--args ARGS] [--file FILE] COMMAND [TOKENS...]",
        "",
        "MODE is development (dev, default) or production (prod).",
        "TOKENS after COMMAND are passed through to docker-compose.",
        "",
        "Available commands:",
    ]
    for section in SECTIONS:
        lines.append(f"  {section}:")
        for entry in entries:
            if entry.section == section:
                lines.append(f"    {entry.name:<{width}} - {entry.help}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"
