"""Generator configuration.

Values come from environment variables and CLI options. Defaults that depend
on other values (the external sources directory, the project file) are
derived once per run by `GeneratorSettings.derive`.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path

from sublime_sources.project import PROJECT_FILE_SUFFIX
from sublime_sources.resolver import DEFAULT_REPOSITORY

DEFAULT_DIRECTORY_NAME = "External Libraries"
DEFAULT_TARGET_DIR = "target"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(name: str, value: str | None) -> bool | None:
    if value is None:
        return None
    v = value.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean (true/false), got {value!r}")


def _path_env(name: str) -> Path | None:
    value = os.getenv(name)
    return Path(value).expanduser() if value else None


@dataclass(frozen=True)
class GeneratorConfig:
    """Fully derived configuration of one run.

    Attributes:
        root_dir: Root directory of the build (holds the root pom.xml)
        external_source_directory: Where source archives are extracted
        transitive: Extract sources of transitive dependencies too
        project_file: The `.sublime-project` file to create or update
        repository: Local Maven repository holding the downloaded artifacts
    """

    root_dir: Path
    external_source_directory: Path
    transitive: bool
    project_file: Path
    repository: Path


@dataclass
class GeneratorSettings:
    """Raw settings; `None` means "use the default"."""

    external_source_directory_name: str | None = None
    external_source_directory_parent: Path | None = None
    external_source_directory: Path | None = None
    transitive: bool | None = None
    project_name: str | None = None
    project_dir: Path | None = None
    project_file: Path | None = None
    repository: Path | None = None

    @classmethod
    def from_env(cls) -> "GeneratorSettings":
        """Create settings from environment variables.

        Environment variables:
            SUBLIME_SOURCES_DIR_NAME: Directory name for external sources
            SUBLIME_SOURCES_DIR_PARENT: Parent directory of the external sources directory
            SUBLIME_SOURCES_DIR: External sources directory (overrides name and parent)
            SUBLIME_SOURCES_TRANSITIVE: "true" to include transitive dependencies
            SUBLIME_SOURCES_PROJECT_NAME: Base name of the project file
            SUBLIME_SOURCES_PROJECT_DIR: Directory of the project file
            SUBLIME_SOURCES_PROJECT_FILE: Project file (overrides name and dir)
            SUBLIME_SOURCES_REPOSITORY: Local Maven repository (default: ~/.m2/repository)

        Raises:
            ValueError: If SUBLIME_SOURCES_TRANSITIVE is not a boolean.
        """
        return cls(
            external_source_directory_name=os.getenv("SUBLIME_SOURCES_DIR_NAME") or None,
            external_source_directory_parent=_path_env("SUBLIME_SOURCES_DIR_PARENT"),
            external_source_directory=_path_env("SUBLIME_SOURCES_DIR"),
            transitive=_parse_bool("SUBLIME_SOURCES_TRANSITIVE", os.getenv("SUBLIME_SOURCES_TRANSITIVE")),
            project_name=os.getenv("SUBLIME_SOURCES_PROJECT_NAME") or None,
            project_dir=_path_env("SUBLIME_SOURCES_PROJECT_DIR"),
            project_file=_path_env("SUBLIME_SOURCES_PROJECT_FILE"),
            repository=_path_env("SUBLIME_SOURCES_REPOSITORY"),
        )

    def override(self, **values: object) -> "GeneratorSettings":
        """Return a copy where every non-None value replaces the current one."""
        known = {f.name for f in fields(self)}
        unknown = set(values) - known
        if unknown:
            raise TypeError(f"Unknown settings: {', '.join(sorted(unknown))}")
        return replace(self, **{k: v for k, v in values.items() if v is not None})

    def validate(self) -> None:
        """Validate the settings.

        Raises:
            ValueError: If a value is unusable.
        """
        name = self.external_source_directory_name
        if name is not None and (not name.strip() or "/" in name or "\\" in name):
            raise ValueError(f"External source directory name must be a plain name, got {name!r}")
        if self.project_name is not None and not self.project_name.strip():
            raise ValueError("Project name must not be empty")

    def derive(self, root_dir: Path, default_project_name: str) -> GeneratorConfig:
        """Apply the defaults and derivation rules.

        Args:
            root_dir: Root directory of the build.
            default_project_name: Name of the build's root project.
        """
        self.validate()
        root_dir = root_dir.resolve()

        directory = self.external_source_directory
        if directory is None:
            parent = self.external_source_directory_parent or root_dir / DEFAULT_TARGET_DIR
            directory = parent / (self.external_source_directory_name or DEFAULT_DIRECTORY_NAME)

        project_file = self.project_file
        if project_file is None:
            project_dir = self.project_dir or root_dir
            project_file = project_dir / f"{self.project_name or default_project_name}{PROJECT_FILE_SUFFIX}"

        return GeneratorConfig(
            root_dir=root_dir,
            external_source_directory=directory.resolve(),
            transitive=bool(self.transitive),
            project_file=project_file.resolve(),
            repository=(self.repository or DEFAULT_REPOSITORY).resolve(),
        )
