from __future__ import annotations

from pathlib import Path

import pytest

from sublime_sources.config import GeneratorSettings


def test_defaults_are_derived_from_the_build(tmp_path: Path) -> None:
    config = GeneratorSettings().derive(tmp_path, "shop")

    assert config.root_dir == tmp_path.resolve()
    assert config.external_source_directory == tmp_path.resolve() / "target" / "External Libraries"
    assert config.transitive is False
    assert config.project_file == tmp_path.resolve() / "shop.sublime-project"
    assert config.repository == (Path.home() / ".m2" / "repository").resolve()


def test_name_and_parent_compose_the_directory(tmp_path: Path) -> None:
    settings = GeneratorSettings(
        external_source_directory_name="libs",
        external_source_directory_parent=tmp_path / "cache",
        project_name="workspace",
        project_dir=tmp_path / "editor",
    )

    config = settings.derive(tmp_path, "shop")

    assert config.external_source_directory == (tmp_path / "cache" / "libs").resolve()
    assert config.project_file == (tmp_path / "editor" / "workspace.sublime-project").resolve()


def test_explicit_paths_win_over_their_parts(tmp_path: Path) -> None:
    settings = GeneratorSettings(
        external_source_directory_name="ignored",
        external_source_directory=tmp_path / "ext",
        project_name="ignored",
        project_file=tmp_path / "my.sublime-project",
    )

    config = settings.derive(tmp_path, "shop")

    assert config.external_source_directory == (tmp_path / "ext").resolve()
    assert config.project_file == (tmp_path / "my.sublime-project").resolve()


def test_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUBLIME_SOURCES_DIR_NAME", "deps")
    monkeypatch.setenv("SUBLIME_SOURCES_TRANSITIVE", "Yes")
    monkeypatch.setenv("SUBLIME_SOURCES_REPOSITORY", str(tmp_path / "repo"))

    settings = GeneratorSettings.from_env()

    assert settings.external_source_directory_name == "deps"
    assert settings.transitive is True
    assert settings.repository == tmp_path / "repo"
    assert settings.project_name is None


def test_invalid_boolean_in_env_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUBLIME_SOURCES_TRANSITIVE", "maybe")

    with pytest.raises(ValueError, match="SUBLIME_SOURCES_TRANSITIVE"):
        GeneratorSettings.from_env()


def test_override_ignores_none() -> None:
    settings = GeneratorSettings(transitive=True, project_name="a")

    updated = settings.override(transitive=None, project_name="b")

    assert updated.transitive is True
    assert updated.project_name == "b"


def test_override_rejects_unknown_settings() -> None:
    with pytest.raises(TypeError):
        GeneratorSettings().override(colour="blue")


@pytest.mark.parametrize("name", ["", "a/b"])
def test_directory_name_must_be_plain(tmp_path: Path, name: str) -> None:
    with pytest.raises(ValueError):
        GeneratorSettings(external_source_directory_name=name).derive(tmp_path, "shop")
