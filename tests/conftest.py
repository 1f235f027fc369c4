from __future__ import annotations

from pathlib import Path

import pytest

from axumdoc.syntax.source import SourceLoader
from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable crate builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture
def loader(tmp_path: Path) -> SourceLoader:
    """Loader for parsing in-memory snippets."""
    return SourceLoader(tmp_path)
