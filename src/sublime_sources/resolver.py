"""Locate already-downloaded artifacts in a local Maven repository.

The resolver does not download anything: it assumes the build tool already
fetched the classified artifacts (e.g. `mvn dependency:sources`) and only maps
module coordinates to the files present on disk.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

import networkx as nx

from sublime_sources.exceptions import ResolutionError, SublimeSourcesError
from sublime_sources.models import (
    ArtifactDescriptor,
    ArtifactType,
    MavenProject,
    ModuleCoordinate,
    ResolvedArtifact,
    UNKNOWN_VERSION,
)
from sublime_sources.parser import parse_pom

logger = logging.getLogger(__name__)

DEFAULT_REPOSITORY = Path.home() / ".m2" / "repository"

# Scopes that Maven does not propagate to dependents.
NON_TRANSITIVE_SCOPES = frozenset({"test", "provided", "system"})

BINARY_EXTENSIONS = frozenset({"jar", "war", "aar"})
_IGNORED_SUFFIXES = (".sha1", ".md5", ".sha256", ".sha512", ".asc", ".lastUpdated")


class ArtifactResolver(Protocol):
    """Anything that can list the artifacts a module depends on."""

    def resolve(self, project: MavenProject) -> list[ResolvedArtifact]: ...


def classify(file_name: str, artifact_id: str, version: str) -> ArtifactDescriptor | None:
    """Classify a file of a repository version directory.

    Returns None for files that are not artifacts of `artifact_id:version`
    (checksums, signatures, resolver bookkeeping).
    """
    prefix = f"{artifact_id}-{version}"
    if not file_name.startswith(prefix) or file_name.endswith(_IGNORED_SUFFIXES):
        return None

    rest = file_name[len(prefix):]
    if rest.startswith("-"):
        classifier, dot, extension = rest[1:].partition(".")
        if not dot or not classifier:
            return None
    elif rest.startswith("."):
        classifier, extension = None, rest[1:]
    else:
        return None
    if not extension:
        return None

    if classifier == "sources":
        kind = ArtifactType.SOURCES
    elif classifier == "javadoc":
        kind = ArtifactType.JAVADOC
    elif extension == "pom":
        kind = ArtifactType.POM
    elif classifier is None and extension in BINARY_EXTENSIONS:
        kind = ArtifactType.BINARY
    else:
        kind = ArtifactType.OTHER
    return ArtifactDescriptor(name=artifact_id, type=kind, extension=extension, classifier=classifier)


class LocalRepositoryResolver:
    """Resolve modules against a local Maven repository layout.

    The dependency graph (A -> B means A depends on B) is built lazily from the
    `.pom` files stored next to the artifacts and shared between modules, so
    every POM of the repository is read at most once per resolver.
    """

    def __init__(self, repository: Path = DEFAULT_REPOSITORY) -> None:
        self.repository = Path(repository)
        self._graph = nx.DiGraph()
        self._expanded: set[ModuleCoordinate] = set()

    def version_dir(self, coordinate: ModuleCoordinate) -> Path:
        return (
            self.repository.joinpath(*coordinate.organization.split("."))
            / coordinate.artifact_id
            / coordinate.revision
        )

    def _pin_version(self, coordinate: ModuleCoordinate) -> ModuleCoordinate | None:
        """Pick the only version on disk for a coordinate whose version is unknown."""
        if coordinate.revision != UNKNOWN_VERSION:
            return coordinate
        module_dir = self.version_dir(coordinate).parent
        versions = sorted(p.name for p in module_dir.iterdir() if p.is_dir()) if module_dir.is_dir() else []
        if len(versions) != 1:
            logger.debug(
                "Cannot pin a version for %s (candidates: %s)", coordinate.module_key(), versions or "none"
            )
            return None
        return coordinate.model_copy(update={"revision": versions[0]})

    def artifacts_of(self, coordinate: ModuleCoordinate) -> list[ResolvedArtifact]:
        """List the classified artifacts of one module version present on disk."""
        version_dir = self.version_dir(coordinate)
        if not version_dir.is_dir():
            logger.debug("Not in local repository: %s", coordinate.compact())
            return []

        out: list[ResolvedArtifact] = []
        for p in sorted(version_dir.iterdir()):
            if not p.is_file():
                continue
            descriptor = classify(p.name, coordinate.artifact_id, coordinate.revision)
            if descriptor is not None:
                out.append(ResolvedArtifact(artifact=descriptor, path=p.resolve()))
        return out

    def _runtime_dependencies(self, coordinate: ModuleCoordinate) -> list[ModuleCoordinate]:
        pom = self.version_dir(coordinate) / f"{coordinate.artifact_id}-{coordinate.revision}.pom"
        if not pom.is_file():
            return []
        try:
            model = parse_pom(pom)
        except SublimeSourcesError as exc:
            logger.warning("Ignoring dependencies of %s: %s", coordinate.compact(), exc)
            return []

        out: list[ModuleCoordinate] = []
        for dep in model.dependencies:
            if dep.optional or (dep.scope or "compile").lower() in NON_TRANSITIVE_SCOPES:
                continue
            pinned = self._pin_version(dep.coordinate)
            if pinned is not None:
                out.append(pinned)
        return out

    def _expand(self, roots: Iterable[ModuleCoordinate]) -> None:
        queue = deque(roots)
        while queue:
            node = queue.popleft()
            self._graph.add_node(node)
            if node in self._expanded:
                continue
            self._expanded.add(node)
            for child in self._runtime_dependencies(node):
                self._graph.add_edge(node, child)
                queue.append(child)

    def closure(self, declared: Iterable[ModuleCoordinate]) -> list[ModuleCoordinate]:
        """Return the declared coordinates followed by everything they pull in."""
        roots = [c for c in (self._pin_version(d) for d in declared) if c is not None]
        self._expand(roots)

        reachable: set[ModuleCoordinate] = set(roots)
        for r in roots:
            reachable |= nx.descendants(self._graph, r)
        ordered = dict.fromkeys(roots)
        for n in self._graph.nodes:
            if n in reachable:
                ordered.setdefault(n, None)
        return list(ordered)

    def resolve(self, project: MavenProject) -> list[ResolvedArtifact]:
        """Return every artifact, direct or transitive, of one module.

        Raises:
            ResolutionError: If the repository itself is missing.
        """
        if not self.repository.is_dir():
            raise ResolutionError(f"Local repository not found: {self.repository}")

        artifacts: list[ResolvedArtifact] = []
        for coordinate in self.closure(d.coordinate for d in project.dependencies):
            artifacts.extend(self.artifacts_of(coordinate))
        return artifacts
