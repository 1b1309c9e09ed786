"""Command dispatch for stackctl.

Resolves one Invocation per process run, expands aliases, and forwards the
selected operation to ComposeBackend. Exit codes from external tools are
returned unchanged.
"""

import argparse
import dataclasses
import shlex
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import ValidationError

from stackctl.backend import ComposeBackend
from stackctl.config import DatabaseSettings, Mode, StackSettings, UsageError
from stackctl.health import check_health
from stackctl.logging import get_logger, setup_logging
from stackctl.operations import ALIASES, OPERATIONS, Operation, format_help

logger = get_logger(__name__)

EXIT_USAGE = 2
EXIT_NOT_FOUND = 127
EXIT_INTERRUPTED = 130

# Options that take a value, keyed to their long form
VALUE_OPTIONS = {
    "-m": "--mode", "--mode": "--mode",
    "-s": "--service", "--service": "--service",
    "-a": "--args", "--args": "--args",
    "-f": "--file", "--file": "--file",
}


def attach_option_values(argv: List[str]) -> List[str]:
    """Rewrite ``--opt VALUE`` as ``--opt=VALUE`` ahead of the command.

    argparse refuses a separate value that looks like a flag, so
    ``--args -d`` would otherwise fail. Tokens from the command name on are
    left untouched.
    """
    out: List[str] = []
    i = 0
    while i < len(argv):
        token = argv[i]
        if token in VALUE_OPTIONS and i + 1 < len(argv):
            out.append(f"{VALUE_OPTIONS[token]}={argv[i + 1]}")
            i += 2
            continue
        out.append(token)
        if not token.startswith("-"):
            out.extend(argv[i + 1:])
            break
        i += 1
    return out


@dataclass(frozen=True)
class Invocation:
    """Inputs for one operation. Built once per run, never mutated."""
    mode: Mode = Mode.DEVELOPMENT
    service: str = "backend"
    extra_args: Tuple[str, ...] = ()
    trailing: Tuple[str, ...] = ()
    source_file: Optional[Path] = None


class CommandDispatcher:
    """Parses the command line and runs one operation."""

    def __init__(self, backend: ComposeBackend, settings: StackSettings):
        self.backend = backend
        self.settings = settings
        self.parser = self._setup_parser()

    def _setup_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="stackctl",
            description="Run docker-compose workflows against the development or production stack",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
    stackctl dev-up                          # Build and start development stack detached
    stackctl --mode prod logs                # Production backend logs
    stackctl --service gateway shell         # Shell in the gateway container
    stackctl up --force-recreate gateway     # Tokens after the command go to docker-compose
    stackctl --file backup/x.archive db-restore
    stackctl help                            # Full command catalog
""",
        )
        parser.add_argument("-m", "--mode", help="development|dev or production|prod (default: development)")
        parser.add_argument("-s", "--service", help="Service for logs/shell (default: backend)")
        parser.add_argument("-a", "--args", help="Extra docker-compose arguments, quoted (e.g. \"--build -d\")")
        parser.add_argument("-f", "--file", type=Path, help="Archive for db-restore")
        parser.add_argument("operation", nargs="?", default="help", help="Command to run (see 'stackctl help')")
        parser.add_argument("trailing", nargs=argparse.REMAINDER, help="Passed through unchanged")
        return parser

    def build_invocation(self, args: argparse.Namespace) -> Invocation:
        """Merge command-line options over settings defaults."""
        mode = Mode.parse(args.mode if args.mode is not None else self.settings.mode)
        extra = args.args if args.args is not None else self.settings.args
        return Invocation(
            mode=mode,
            service=args.service or self.settings.service,
            extra_args=tuple(shlex.split(extra)),
            trailing=tuple(args.trailing),
            source_file=args.file if args.file is not None else self.settings.file,
        )

    def resolve(self, name: str, invocation: Invocation) -> Tuple[Operation, Invocation]:
        """Expand an alias into its base operation and bound invocation."""
        alias = ALIASES.get(name)
        if alias is not None:
            bound = {}
            if alias.mode is not None:
                bound["mode"] = alias.mode
            if alias.service is not None:
                bound["service"] = alias.service
            if alias.extra_args is not None:
                bound["extra_args"] = alias.extra_args
            return OPERATIONS[alias.target], dataclasses.replace(invocation, **bound)

        if name in OPERATIONS:
            return OPERATIONS[name], invocation
        raise UsageError(f"Unknown command: {name}. Run 'stackctl help' for the list")

    def dispatch(self, name: str, invocation: Invocation) -> int:
        op, invocation = self.resolve(name, invocation)
        if invocation.trailing and not op.trailing:
            logger.warning("Ignoring extra tokens", command=name, tokens=list(invocation.trailing))
        if invocation.extra_args and not op.extra_args:
            logger.debug("Ignoring extra arguments", command=name, args=list(invocation.extra_args))
        return getattr(self, f"cmd_{op.handler}")(op, invocation)

    def compose_args(self, op: Operation, invocation: Invocation) -> List[str]:
        """Subcommand, then extra args, then trailing tokens, then service."""
        args = list(op.subcommand)
        if op.extra_args:
            args.extend(invocation.extra_args)
        if op.trailing:
            args.extend(invocation.trailing)
        if op.service:
            args.append(invocation.service)
        return args

    def command_line(self, name: str, invocation: Invocation) -> List[str]:
        """docker-compose command line a configuration-scoped command would run."""
        op, invocation = self.resolve(name, invocation)
        if op.handler == "shell":
            return self.backend.compose_cmd(invocation.mode, "exec", invocation.service, "sh")
        if op.handler != "compose":
            raise UsageError(f"{name} is not a docker-compose command")
        return self.backend.compose_cmd(invocation.mode, *self.compose_args(op, invocation))

    # --- Command Handlers ---

    def cmd_compose(self, op: Operation, invocation: Invocation) -> int:
        return self.backend.compose(invocation.mode, *self.compose_args(op, invocation))

    def cmd_shell(self, op: Operation, invocation: Invocation) -> int:
        return self.backend.shell(invocation.mode, invocation.service)

    def cmd_db_reset(self, op: Operation, invocation: Invocation) -> int:
        return self.backend.reset_database(invocation.mode)

    def cmd_db_backup(self, op: Operation, invocation: Invocation) -> int:
        return self.backend.backup_database(invocation.mode)

    def cmd_db_restore(self, op: Operation, invocation: Invocation) -> int:
        return self.backend.restore_database(invocation.mode, invocation.source_file)

    def cmd_db_list_volumes(self, op: Operation, invocation: Invocation) -> int:
        return self.backend.list_volumes()

    def cmd_mongo_shell(self, op: Operation, invocation: Invocation) -> int:
        return self.backend.mongo_shell(invocation.mode)

    def cmd_npm(self, op: Operation, invocation: Invocation) -> int:
        return self.backend.npm(*op.subcommand)

    def cmd_clean(self, op: Operation, invocation: Invocation) -> int:
        return self.backend.clean()

    def cmd_clean_all(self, op: Operation, invocation: Invocation) -> int:
        return self.backend.clean_all()

    def cmd_clean_volumes(self, op: Operation, invocation: Invocation) -> int:
        return self.backend.clean_volumes()

    def cmd_health(self, op: Operation, invocation: Invocation) -> int:
        check_health(self.settings)
        return 0

    def cmd_help(self, op: Optional[Operation] = None, invocation: Optional[Invocation] = None) -> int:
        print(format_help(), end="")
        return 0

    def run(self, argv: Optional[List[str]] = None) -> int:
        if argv is None:
            argv = sys.argv[1:]
        args = self.parser.parse_args(attach_option_values(argv))
        # help never depends on the mode being valid
        if args.operation == "help":
            return self.cmd_help()
        invocation = self.build_invocation(args)
        return self.dispatch(args.operation, invocation)


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the stackctl command."""
    setup_logging("stackctl")
    sys.exit(run(argv))


def run(argv: Optional[List[str]] = None) -> int:
    """Run one command and return the process exit code."""
    try:
        settings = StackSettings()
        dispatcher = CommandDispatcher(ComposeBackend(settings, DatabaseSettings()), settings)
        return dispatcher.run(argv)
    except ValidationError as e:
        print(f"Error: invalid configuration\n{e}", file=sys.stderr)
        return EXIT_USAGE
    except UsageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE
    except FileNotFoundError as e:
        logger.error("Command not found", executable=e.filename, error=e.strerror)
        return EXIT_NOT_FOUND
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return EXIT_INTERRUPTED
