from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable project builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _reset_primer_logger() -> Iterator[None]:
    """CLI runs detach the primer logger from the root; reattach it for caplog."""
    yield
    logger = logging.getLogger("primer")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
