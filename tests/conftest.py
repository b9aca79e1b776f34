"""Pytest configuration and fixtures for sublime-sources tests."""
from __future__ import annotations

import os
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep SUBLIME_SOURCES_* variables of the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.startswith("SUBLIME_SOURCES_"):
            monkeypatch.delenv(key)


@pytest.fixture
def repository(tmp_path: Path) -> Path:
    """An empty local Maven repository."""
    repo = tmp_path / "m2" / "repository"
    repo.mkdir(parents=True)
    return repo
