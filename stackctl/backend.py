"""docker-compose backend: builds and runs every external command line."""

import shlex
import subprocess
from datetime import datetime
from pathlib import Path
from typing import IO, List, Optional, Sequence

from stackctl.config import DatabaseSettings, Mode, StackSettings, UsageError
from stackctl.logging import get_logger

logger = get_logger(__name__)

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


def backup_filename(moment: datetime) -> str:
    """Archive name for a backup taken at ``moment`` (second resolution)."""
    return f"db-backup-{moment.strftime(BACKUP_TIMESTAMP_FORMAT)}.archive"


class ComposeBackend:
    """docker-compose, docker and npm operations for one project checkout."""

    def __init__(self, settings: StackSettings, database: DatabaseSettings):
        self.settings = settings
        self.database = database

    # --- command construction ---

    def compose_file(self, mode: Mode) -> Path:
        return self.settings.compose_files()[mode]

    def compose_cmd(self, mode: Mode, *args: str) -> List[str]:
        """Full docker-compose command line for ``mode``."""
        return shlex.split(self.settings.compose_command) + [
            "-f", str(self.compose_file(mode)),
            "--env-file", str(self.settings.compose_env_file),
            *args,
        ]

    def docker_cmd(self, *args: str) -> List[str]:
        return shlex.split(self.settings.docker_command) + list(args)

    def _mongo_auth(self) -> List[str]:
        user, password = self.database.credentials()
        return ["-u", user, "-p", password, "--authenticationDatabase", self.database.auth_database]

    def _run(
        self,
        cmd: Sequence[str],
        stdin: Optional[IO[bytes]] = None,
        stdout: Optional[IO[bytes]] = None,
        cwd: Optional[Path] = None,
    ) -> int:
        """Run a command attached to the terminal and return its exit code."""
        logger.info("Running command", command=redact(cmd))
        result = subprocess.run(list(cmd), stdin=stdin, stdout=stdout, cwd=cwd)
        if result.returncode != 0:
            logger.debug("Command exited non-zero", returncode=result.returncode)
        return result.returncode

    def _run_steps(self, steps: Sequence[Sequence[str]]) -> int:
        """Run commands in order, stopping at the first failure."""
        for cmd in steps:
            code = self._run(cmd)
            if code != 0:
                return code
        return 0

    # --- configuration-scoped ---

    def compose(self, mode: Mode, *args: str) -> int:
        return self._run(self.compose_cmd(mode, *args))

    def shell(self, mode: Mode, service: str) -> int:
        return self.compose(mode, "exec", service, "sh")

    # --- database ---

    def reset_cmd(self, mode: Mode) -> List[str]:
        drop = f"db.getSiblingDB('{self.database.name}').dropDatabase()"
        return self.compose_cmd(mode, "exec", self.database.service, "mongosh", *self._mongo_auth(), "--eval", drop)

    def dump_cmd(self, mode: Mode) -> List[str]:
        return self.compose_cmd(
            mode, "exec", "-T", self.database.service, "mongodump",
            *self._mongo_auth(), "--db", self.database.name, "--archive",
        )

    def restore_cmd(self, mode: Mode) -> List[str]:
        return self.compose_cmd(
            mode, "exec", "-T", self.database.service, "mongorestore",
            *self._mongo_auth(), "--archive",
        )

    def mongo_shell_cmd(self, mode: Mode) -> List[str]:
        return self.compose_cmd(mode, "exec", self.database.service, "mongosh", *self._mongo_auth())

    def reset_database(self, mode: Mode) -> int:
        return self._run(self.reset_cmd(mode))

    def mongo_shell(self, mode: Mode) -> int:
        return self._run(self.mongo_shell_cmd(mode))

    def backup_database(self, mode: Mode, now: Optional[datetime] = None) -> int:
        """Stream a mongodump archive into the backup directory."""
        cmd = self.dump_cmd(mode)
        backup_dir = self.settings.backup_dir
        backup_dir.mkdir(parents=True, exist_ok=True)
        target = backup_dir / backup_filename(now or datetime.now())

        with open(target, "wb") as out:
            code = self._run(cmd, stdout=out)
        if code == 0:
            print(f"Backup saved to {target}")
        return code

    def restore_database(self, mode: Mode, source: Optional[Path]) -> int:
        """Stream ``source`` into mongorestore."""
        if source is None:
            raise UsageError("db-restore needs an archive: stackctl --file backup/db-backup-XXXXXX.archive db-restore")
        if not source.is_file():
            raise UsageError(f"Backup archive not found: {source}")
        cmd = self.restore_cmd(mode)

        with open(source, "rb") as src:
            code = self._run(cmd, stdin=src)
        if code == 0:
            print(f"Database restored from {source}")
        return code

    def list_volumes(self) -> int:
        return self._run(self.docker_cmd("volume", "ls", "--filter", f"name={self.database.service}"))

    # --- cleanup ---

    def clean_steps(self) -> List[List[str]]:
        steps = [self.compose_cmd(mode, "down", "--remove-orphans") for mode in Mode]
        steps.append(self.docker_cmd("network", "prune", "-f"))
        return steps

    def clean_all_steps(self) -> List[List[str]]:
        return self.clean_steps() + [self.docker_cmd("system", "prune", "-af", "--volumes")]

    def clean(self) -> int:
        return self._run_steps(self.clean_steps())

    def clean_all(self) -> int:
        return self._run_steps(self.clean_all_steps())

    def clean_volumes(self) -> int:
        return self._run(self.docker_cmd("volume", "prune", "-f"))

    # --- backend project ---

    def npm(self, *args: str) -> int:
        cmd = shlex.split(self.settings.npm_command) + list(args)
        return self._run(cmd, cwd=self.settings.backend_dir)


MONGO_CLIENTS = ("mongosh", "mongodump", "mongorestore")


def redact(cmd: Sequence[str]) -> str:
    """Printable command with the value after a mongo client's -p masked."""
    parts = list(cmd)
    in_client = False
    for i, part in enumerate(parts):
        if part in MONGO_CLIENTS:
            in_client = True
        elif in_client and part == "-p" and i + 1 < len(parts):
            parts[i + 1] = "******"
    return shlex.join(parts)
