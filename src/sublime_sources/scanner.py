from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

from sublime_sources.exceptions import PomNotFoundError
from sublime_sources.models import Dependency, MavenProject, ModuleCoordinate, UNKNOWN_VERSION
from sublime_sources.parser import parse_pom

logger = logging.getLogger(__name__)


def root_pom(root: Path) -> Path:
    """Return the POM of the build rooted at `root` (a directory or a POM file)."""
    if root.is_file():
        return root
    pom = root / "pom.xml"
    if not pom.is_file():
        raise PomNotFoundError(f"pom.xml not found: {pom}")
    return pom


def _apply_managed_versions(project: MavenProject, managed: Mapping[str, str]) -> MavenProject:
    if not managed:
        return project
    deps: list[Dependency] = []
    for dep in project.dependencies:
        c = dep.coordinate
        version = managed.get(c.module_key())
        if c.revision == UNKNOWN_VERSION and version:
            dep = dep.model_copy(update={"coordinate": c.model_copy(update={"revision": version})})
        deps.append(dep)
    return project.model_copy(update={"dependencies": deps})


def discover_modules(root: Path) -> list[MavenProject]:
    """Parse the root POM and, recursively, every module it declares.

    Modules are returned depth-first in declaration order, root first. Each
    POM is parsed at most once. Dependency versions left "Unknown" are taken
    from the <dependencyManagement> of the module or one of its ancestors.

    Args:
        root: Build directory holding a pom.xml, or a POM file.

    Raises:
        PomNotFoundError: If the root POM is missing.

    Returns:
        The parsed modules of the build.
    """
    projects: list[MavenProject] = []
    seen: set[Path] = set()

    def visit(pom: Path, inherited: Mapping[str, str]) -> None:
        pom = pom.resolve()
        if pom in seen:
            return
        seen.add(pom)

        project = parse_pom(pom)
        managed = {**inherited, **project.managed_versions}
        projects.append(_apply_managed_versions(project, managed))

        for module in project.modules:
            child = pom.parent / module
            if child.is_dir():
                child = child / "pom.xml"
            if not child.is_file():
                logger.warning("Module %s declared in %s has no POM, skipping", module, pom)
                continue
            visit(child, managed)

    visit(root_pom(root), {})
    return projects


def declared_dependencies(projects: Iterable[MavenProject]) -> list[ModuleCoordinate]:
    """Collect the dependencies declared by all modules, de-duplicated in first-seen order.

    Dependencies on other modules of the same build are left out.
    """
    projects = list(projects)
    own = {p.project.module_key() for p in projects}

    out: dict[ModuleCoordinate, None] = {}
    for proj in projects:
        for dep in proj.dependencies:
            if dep.coordinate.module_key() in own:
                continue
            out.setdefault(dep.coordinate, None)
    return list(out)
