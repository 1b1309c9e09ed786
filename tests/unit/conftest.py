"""Shared fixtures for stackctl tests."""

import subprocess
from unittest.mock import patch

import pytest

from stackctl.backend import ComposeBackend
from stackctl.config import DatabaseSettings, StackSettings
from stackctl.dispatcher import CommandDispatcher


@pytest.fixture
def settings(tmp_path):
    return StackSettings(
        _env_file=None,
        compose_command="docker-compose",
        docker_command="docker",
        npm_command="npm",
        compose_env_file=".env",
        development_compose_file="docker/compose.development.yaml",
        production_compose_file="docker/compose.production.yaml",
        mode="development",
        service="backend",
        args="",
        file=None,
        backup_dir=tmp_path / "backup",
        backend_dir=tmp_path / "backend",
        health_host="localhost",
        health_port=5921,
    )


@pytest.fixture
def database():
    return DatabaseSettings(
        _env_file=None,
        service="mongo",
        name="ecommerce",
        user="admin",
        password="s3cret",
        auth_database="admin",
    )


@pytest.fixture
def backend(settings, database):
    return ComposeBackend(settings, database)


@pytest.fixture
def dispatcher(backend, settings):
    return CommandDispatcher(backend, settings)


@pytest.fixture
def mock_run():
    """Patch subprocess.run in the backend; every command exits 0."""
    with patch("stackctl.backend.subprocess.run") as run:
        run.return_value = subprocess.CompletedProcess(args=[], returncode=0)
        yield run
