from __future__ import annotations

from pathlib import Path

import pytest

from helpers import dependency_xml, install_artifact
from sublime_sources.exceptions import ResolutionError
from sublime_sources.models import ArtifactType, Dependency, MavenProject, ModuleCoordinate
from sublime_sources.resolver import LocalRepositoryResolver, classify


def _project(*deps: ModuleCoordinate) -> MavenProject:
    return MavenProject(
        project=ModuleCoordinate(organization="com.acme", name="app", revision="1.0.0"),
        dependencies=[Dependency(coordinate=d) for d in deps],
    )


@pytest.mark.parametrize(
    ("file_name", "expected"),
    [
        ("guava-33.0-sources.jar", (ArtifactType.SOURCES, "jar", "sources")),
        ("guava-33.0-javadoc.jar", (ArtifactType.JAVADOC, "jar", "javadoc")),
        ("guava-33.0.jar", (ArtifactType.BINARY, "jar", None)),
        ("guava-33.0.pom", (ArtifactType.POM, "pom", None)),
        ("guava-33.0-tests.jar", (ArtifactType.OTHER, "jar", "tests")),
    ],
)
def test_classify(file_name: str, expected: tuple) -> None:
    descriptor = classify(file_name, "guava", "33.0")
    assert descriptor is not None
    assert descriptor.name == "guava"
    assert (descriptor.type, descriptor.extension, descriptor.classifier) == expected


@pytest.mark.parametrize(
    "file_name",
    ["guava-33.0.jar.sha1", "guava-33.0.pom.lastUpdated", "_remote.repositories", "other-33.0.jar"],
)
def test_classify_ignores_non_artifacts(file_name: str) -> None:
    assert classify(file_name, "guava", "33.0") is None


def test_resolve_lists_artifacts_of_declared_modules(repository: Path) -> None:
    install_artifact(repository, "com.google.guava", "guava", "33.0", sources={"A.java": "class A {}"})

    resolver = LocalRepositoryResolver(repository)
    guava = ModuleCoordinate(organization="com.google.guava", name="guava", revision="33.0")
    artifacts = resolver.resolve(_project(guava))

    kinds = sorted(a.artifact.type.value for a in artifacts)
    assert kinds == ["binary", "pom", "sources"]
    assert all(a.path.is_absolute() for a in artifacts)


def test_resolve_follows_runtime_dependencies_only(repository: Path) -> None:
    install_artifact(
        repository,
        "org.acme",
        "top",
        "1.0",
        sources={},
        dependencies=[
            dependency_xml("org.acme", "runtime-dep", "2.0"),
            dependency_xml("org.acme", "test-dep", "3.0", scope="test"),
        ],
    )
    install_artifact(repository, "org.acme", "runtime-dep", "2.0", sources={})
    install_artifact(repository, "org.acme", "test-dep", "3.0", sources={})

    resolver = LocalRepositoryResolver(repository)
    top = ModuleCoordinate(organization="org.acme", name="top", revision="1.0")

    names = {a.artifact.name for a in resolver.resolve(_project(top))}
    assert names == {"top", "runtime-dep"}
    assert [c.name for c in resolver.closure([top])] == ["top", "runtime-dep"]


def test_unknown_version_is_pinned_when_unambiguous(repository: Path) -> None:
    install_artifact(repository, "org.acme", "lib", "1.2", sources={})

    resolver = LocalRepositoryResolver(repository)
    lib = ModuleCoordinate(organization="org.acme", name="lib")

    assert [c.revision for c in resolver.closure([lib])] == ["1.2"]


def test_unknown_version_is_skipped_when_ambiguous(repository: Path) -> None:
    install_artifact(repository, "org.acme", "lib", "1.2")
    install_artifact(repository, "org.acme", "lib", "1.3")

    resolver = LocalRepositoryResolver(repository)

    assert resolver.closure([ModuleCoordinate(organization="org.acme", name="lib")]) == []


def test_module_not_in_repository_has_no_artifacts(repository: Path) -> None:
    resolver = LocalRepositoryResolver(repository)
    missing = ModuleCoordinate(organization="org.acme", name="missing", revision="1.0")

    assert resolver.resolve(_project(missing)) == []


def test_missing_repository_raises(tmp_path: Path) -> None:
    resolver = LocalRepositoryResolver(tmp_path / "nope")

    with pytest.raises(ResolutionError):
        resolver.resolve(_project())
