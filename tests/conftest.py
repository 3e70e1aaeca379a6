import os
import pytest
from pathlib import Path
from unittest.mock import patch

# Set test environment variables before importing app modules
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["LOG_LEVEL"] = "INFO"
os.environ["ALLOWED_ORIGINS"] = "http://localhost:3000"

from core.config import settings
from core.database import db_manager, initialize_database
from core.sonar import Build, BuildResult


@pytest.fixture(autouse=True)
def mock_settings(tmp_path):
    """Point workspace and configuration at a per-test directory."""
    with patch.dict(os.environ, {
        "DATABASE_URL": "sqlite:///:memory:",
        "ALLOWED_ORIGINS": "http://localhost:3000",
    }), patch.object(settings, "workspace_root", str(tmp_path / "workspace")), \
            patch.object(settings, "sonar_config_path", str(tmp_path / "sonar.yml")):
        yield


@pytest.fixture
def database(tmp_path):
    """Fresh SQLite database for one test."""
    db_manager.dispose()
    initialize_database(f"sqlite:///{tmp_path / 'test.db'}")
    yield db_manager
    db_manager.dispose()


@pytest.fixture
def make_build(tmp_path):
    def _make(**kwargs):
        workspace = tmp_path / "ws"
        workspace.mkdir(exist_ok=True)
        defaults = {
            "job_name": "my-job",
            "number": 1,
            "workspace": workspace,
            "log_path": tmp_path / "builds" / str(kwargs.get("number", 1)) / "log",
            "result": BuildResult.SUCCESS,
        }
        defaults.update(kwargs)
        return Build(**defaults)
    return _make


@pytest.fixture
def write_log():
    def _write(build: Build, lines) -> None:
        Path(build.log_path).parent.mkdir(parents=True, exist_ok=True)
        Path(build.log_path).write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
    return _write
