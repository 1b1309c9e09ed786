"""Configuration for stackctl.

Uses pydantic-settings so every default can be overridden from the
environment or from the project's ``.env`` (the same file docker-compose
reads with ``--env-file``).
"""

from enum import Enum
from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class UsageError(ValueError):
    """Invalid or missing input, detected before any external command runs."""


class Mode(str, Enum):
    """Deployment environment selecting the compose file."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"

    @classmethod
    def parse(cls, value: "str | Mode") -> "Mode":
        """Resolve a user-supplied mode, accepting the short spellings.

        Raises:
            UsageError: for anything other than development/dev or
                production/prod. There is no silent fallback.
        """
        if isinstance(value, Mode):
            return value
        key = value.strip().lower()
        if key in _MODE_SPELLINGS:
            return _MODE_SPELLINGS[key]
        valid = ", ".join(m.value for m in cls)
        raise UsageError(f"Unknown mode: {value!r}. Valid: {valid} (or dev, prod)")


_MODE_SPELLINGS = {
    "development": Mode.DEVELOPMENT,
    "dev": Mode.DEVELOPMENT,
    "production": Mode.PRODUCTION,
    "prod": Mode.PRODUCTION,
}


def _find_env_file() -> Path | None:
    """Search up from the working directory for a .env file."""
    current = Path.cwd()
    for _ in range(10):  # Max 10 levels up
        env_path = current / ".env"
        if env_path.exists():
            return env_path
        if current.parent == current:
            break
        current = current.parent
    return None


_ENV_FILE = _find_env_file()


class StackSettings(BaseSettings):
    """Paths, binaries and invocation defaults.

    Reads from environment variables prefixed with STACKCTL_,
    e.g. STACKCTL_MODE=prod or STACKCTL_COMPOSE_COMMAND="docker compose".
    """

    model_config = SettingsConfigDict(
        env_prefix="STACKCTL_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # External binaries (split with shlex, so "docker compose" works)
    compose_command: str = "docker-compose"
    docker_command: str = "docker"
    npm_command: str = "npm"

    # Compose files, one per mode
    compose_env_file: Path = Field(default=Path(".env"), description="Passed as --env-file")
    development_compose_file: Path = Path("docker/compose.development.yaml")
    production_compose_file: Path = Path("docker/compose.production.yaml")

    # Invocation defaults, overridden by command-line options
    mode: str = "development"
    service: str = "backend"
    args: str = Field(default="", description="Extra compose arguments, shell-quoted")
    file: Path | None = Field(default=None, description="Archive for db-restore")

    backup_dir: Path = Path("backup")
    backend_dir: Path = Path("backend")

    # Health probes (gateway and backend are both served through the gateway port)
    health_host: str = "localhost"
    health_port: int = 5921
    gateway_health_path: str = "/health"
    backend_health_path: str = "/api/health"
    health_timeout: float = Field(default=5.0, description="Per-probe timeout (seconds)")

    def compose_files(self) -> dict[Mode, Path]:
        """Mode to compose file. Total over Mode."""
        return {
            Mode.DEVELOPMENT: self.development_compose_file,
            Mode.PRODUCTION: self.production_compose_file,
        }


class DatabaseSettings(BaseSettings):
    """MongoDB service and credentials.

    Credentials are never defaulted; set MONGO_USER and MONGO_PASSWORD in
    the environment or .env.
    """

    model_config = SettingsConfigDict(
        env_prefix="MONGO_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    service: str = Field(default="mongo", description="Compose service running mongod")
    name: str = Field(default="ecommerce", description="Application database")
    user: str | None = None
    password: SecretStr | None = None
    auth_database: str = "admin"

    def credentials(self) -> tuple[str, str]:
        """Return (user, password) or raise UsageError naming what is missing."""
        missing = []
        if not self.user:
            missing.append("MONGO_USER")
        if self.password is None or not self.password.get_secret_value():
            missing.append("MONGO_PASSWORD")
        if missing:
            raise UsageError(f"Database credentials not configured: set {', '.join(missing)}")
        return self.user, self.password.get_secret_value()
