from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.fake_git import FakeGit


@pytest.fixture
def fake_git(tmp_path: Path) -> FakeGit:
    """Provide a recording git double rooted at a throwaway repository."""
    return FakeGit(tmp_path)
