"""Builders for POM files, jars and local repositories used by the tests."""
from __future__ import annotations

import zipfile
from pathlib import Path


def write_jar(path: Path, files: dict[str, str]) -> Path:
    """Create a zip archive at `path` holding `files` (name -> text)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return path


def write_pom(directory: Path, body: str, name: str = "pom.xml") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<project xmlns="http://maven.apache.org/POM/4.0.0">\n'
        "  <modelVersion>4.0.0</modelVersion>\n"
        f"{body}\n"
        "</project>\n",
        encoding="utf-8",
    )
    return path


def dependency_xml(group_id: str, artifact_id: str, version: str | None = None, scope: str | None = None) -> str:
    parts = [f"<groupId>{group_id}</groupId>", f"<artifactId>{artifact_id}</artifactId>"]
    if version:
        parts.append(f"<version>{version}</version>")
    if scope:
        parts.append(f"<scope>{scope}</scope>")
    return "<dependency>" + "".join(parts) + "</dependency>"


def install_artifact(
    repository: Path,
    group_id: str,
    artifact_id: str,
    version: str,
    sources: dict[str, str] | None = None,
    dependencies: list[str] | None = None,
) -> Path:
    """Lay out an artifact in a local repository: pom, binary jar and optionally a sources jar."""
    version_dir = repository.joinpath(*group_id.split(".")) / artifact_id / version
    deps = "".join(dependencies or [])
    write_pom(
        version_dir,
        f"<groupId>{group_id}</groupId><artifactId>{artifact_id}</artifactId><version>{version}</version>"
        f"<dependencies>{deps}</dependencies>",
        name=f"{artifact_id}-{version}.pom",
    )
    write_jar(version_dir / f"{artifact_id}-{version}.jar", {"META-INF/MANIFEST.MF": "Manifest-Version: 1.0\n"})
    if sources is not None:
        write_jar(version_dir / f"{artifact_id}-{version}-sources.jar", sources)
    return version_dir
