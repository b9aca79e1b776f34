"""Pydantic models for module coordinates, resolved artifacts and project files."""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


UNKNOWN_VERSION = "Unknown"

# Scala-style binary version appended to an artifact id, e.g. `cats-core_2.13`.
_CROSS_VERSION_RE = re.compile(r"^(?P<name>.+?)_(?P<suffix>\d+(?:\.\d+)*)$")


class ModuleCoordinate(BaseModel):
    """Maven coordinates of a declared dependency.

    `name` is the artifact id without its cross-build suffix; the suffix, if
    any, is kept in `cross_version`.
    """

    model_config = ConfigDict(frozen=True)

    organization: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    revision: str = Field(default=UNKNOWN_VERSION, min_length=1)
    cross_version: str | None = None

    @classmethod
    def from_artifact_id(
        cls, organization: str, artifact_id: str, revision: str = UNKNOWN_VERSION
    ) -> ModuleCoordinate:
        """Build a coordinate, splitting a trailing `_<binary version>` off the artifact id."""
        m = _CROSS_VERSION_RE.match(artifact_id)
        if m is None:
            return cls(organization=organization, name=artifact_id, revision=revision)
        return cls(
            organization=organization,
            name=m.group("name"),
            revision=revision,
            cross_version=m.group("suffix"),
        )

    @property
    def artifact_id(self) -> str:
        """The artifact id as published, cross-build suffix included."""
        if self.cross_version:
            return f"{self.name}_{self.cross_version}"
        return self.name

    def module_key(self) -> str:
        """Return `groupId:artifactId`, the key used for managed versions."""
        return f"{self.organization}:{self.artifact_id}"

    def compact(self) -> str:
        """Return a compact string representation.

        Returns:
            A string like `groupId:artifactId:version`.
        """
        return f"{self.organization}:{self.artifact_id}:{self.revision}"


class Dependency(BaseModel):
    """A Maven dependency entry."""

    coordinate: ModuleCoordinate
    scope: str | None = None
    optional: bool | None = None

    def label(self) -> str:
        """Return a user-facing label for the dependency.

        Returns:
            A formatted string including coordinates and scope when present.
        """
        parts: list[str] = [self.coordinate.compact()]
        if self.scope:
            parts.append(f"(scope={self.scope})")
        if self.optional is True:
            parts.append("(optional)")
        return " ".join(parts)


class MavenProject(BaseModel):
    """A parsed Maven project model."""

    project: ModuleCoordinate
    pom_path: Path | None = None
    dependencies: list[Dependency] = Field(default_factory=list)
    modules: list[str] = Field(default_factory=list)
    # `groupId:artifactId` -> version, from <dependencyManagement>
    managed_versions: dict[str, str] = Field(default_factory=dict)

    @property
    def base_dir(self) -> Path | None:
        return self.pom_path.parent if self.pom_path is not None else None


class ArtifactType(str, Enum):
    BINARY = "binary"
    SOURCES = "sources"
    JAVADOC = "javadoc"
    POM = "pom"
    OTHER = "other"


class ArtifactDescriptor(BaseModel):
    """One classified variant of a published library."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    type: ArtifactType
    extension: str
    classifier: str | None = None


class ResolvedArtifact(BaseModel):
    """An artifact paired with the file the resolver found for it on disk."""

    model_config = ConfigDict(frozen=True)

    artifact: ArtifactDescriptor
    path: Path

    @property
    def file_name(self) -> str:
        return self.path.name


class ProjectFolder(BaseModel):
    """A folder entry of a project file.

    Keys other than `path` and `name` (e.g. `folder_exclude_patterns`) are kept
    as extra fields so they survive a load/dump cycle.
    """

    model_config = ConfigDict(extra="allow")

    path: str = Field(..., min_length=1)
    name: str | None = None


class ProjectDescriptor(BaseModel):
    """The `.sublime-project` document.

    `settings` and `build_systems` are opaque; unknown top-level keys are
    carried along as extra fields.
    """

    model_config = ConfigDict(extra="allow")

    folders: list[ProjectFolder] = Field(default_factory=list)
    settings: dict[str, Any] = Field(default_factory=dict)
    build_systems: list[Any] = Field(default_factory=list)

    def has_folder(self, path: str) -> bool:
        return any(f.path == path for f in self.folders)
