from __future__ import annotations

import pathlib
import shutil
import sys

import pytest

REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from tests.helpers.projects import ProjectBuilder, RecordingRunner  # noqa: E402

skip_if_no_shell = pytest.mark.skipif(
    shutil.which("sh") is None,
    reason="POSIX shell not available for subprocess runner tests",
)


@pytest.fixture(scope="session")
def repo_root() -> pathlib.Path:
    return REPO_ROOT


@pytest.fixture
def project(tmp_path: pathlib.Path) -> ProjectBuilder:
    root = (tmp_path / "project").resolve()
    root.mkdir()
    return ProjectBuilder(root=root)


@pytest.fixture
def recording_runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture(autouse=True)
def _clear_scriptgate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("SCRIPTGATE_LOG_LEVEL", "SCRIPTGATE_SCAN_WORKERS", "SCRIPTGATE_USE_LOCKFILE"):
        monkeypatch.delenv(name, raising=False)
