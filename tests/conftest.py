"""
Pytest config.

Pins the repo root on sys.path so `import authflow` works from a plain checkout, and
provides the test doubles the library deliberately does not ship: an in-memory
permission authority and a recorder for outcome handlers.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()


class InMemoryPermissionAuthority:
    """Grant table keyed by subject id. `error` is raised from verify when set."""

    def __init__(self) -> None:
        self._grants: Dict[str, Set[str]] = {}
        self.error: Optional[Exception] = None
        self.calls: List[Tuple[str, str, Any]] = []

    def grant(self, subject_id: str, permission: str) -> None:
        self._grants.setdefault(subject_id, set()).add(permission)

    async def verify(self, subject_id: str, permission: str, token: Any) -> bool:
        self.calls.append((subject_id, permission, token))
        if self.error is not None:
            raise self.error
        return permission in self._grants.get(subject_id, set())


class HandlerRecorder:
    """Async outcome handlers that record which one ran and with what."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self.calls]

    async def granted(self, subject_id: str, token: Any) -> None:
        self.calls.append(("granted", (subject_id, token)))

    async def denied(self, subject_id: str, token: Any) -> None:
        self.calls.append(("denied", (subject_id, token)))

    async def cancelled(self, subject_id: str, token: Any) -> None:
        self.calls.append(("cancelled", (subject_id, token)))

    async def exception(self, error: Exception, subject_id: str, token: Any) -> None:
        self.calls.append(("exception", (error, subject_id, token)))


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Any:
    """Settings are cached per process; start every test from a clean env + cache."""
    from authflow.config import load_settings

    for name in ("AUTHFLOW_LOG_OUTCOMES", "AUTHFLOW_MASK_SUBJECTS", "AUTHFLOW_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


@pytest.fixture
def authority() -> InMemoryPermissionAuthority:
    return InMemoryPermissionAuthority()


@pytest.fixture
def recorder() -> HandlerRecorder:
    return HandlerRecorder()


@pytest.fixture
def subject_id() -> str:
    import uuid

    return str(uuid.uuid4())
