"""Parse Maven pom.xml files using lxml."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Mapping

from lxml import etree

from sublime_sources.exceptions import PomModelError, PomNotFoundError, PomParseError
from sublime_sources.models import Dependency, MavenProject, ModuleCoordinate, UNKNOWN_VERSION


_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}")

_PROJECT = "/*[local-name()='project']"


def _text_first(node: etree._Element, xpath_expr: str) -> str | None:
    """Get text of the first matching element using namespace-agnostic XPath.

    Args:
        node: Root element to query under.
        xpath_expr: XPath expression (should use local-name()).

    Returns:
        Text content if found and non-empty, otherwise None.
    """
    found = node.xpath(xpath_expr)
    if not found:
        return None
    first = found[0]
    if isinstance(first, etree._Element):
        text = (first.text or "").strip()
        return text or None
    if isinstance(first, str):
        text = first.strip()
        return text or None
    return None


def _bool_text(value: str | None) -> bool | None:
    if value is None:
        return None
    v = value.strip().lower()
    if v == "true":
        return True
    if v == "false":
        return False
    return None


def _parse_xml(path: Path) -> etree._Element:
    """Parse an XML file and return its root element.

    Raises:
        PomNotFoundError: If the file does not exist.
        PomParseError: If XML cannot be parsed.
    """
    if not path.exists():
        raise PomNotFoundError(f"pom.xml not found: {path}")
    try:
        parser = etree.XMLParser(resolve_entities=False, no_network=True, recover=False)
        tree = etree.parse(str(path), parser=parser)
        return tree.getroot()
    except (OSError, etree.XMLSyntaxError) as exc:
        raise PomParseError(f"Failed to parse pom.xml: {path}") from exc


def _resolve_placeholders(value: str, props: Mapping[str, str]) -> str:
    """Resolve ${...} placeholders using provided properties.

    Unknown placeholders are preserved as-is.
    """
    current = value
    for _ in range(5):
        changed = False

        def _sub(m: re.Match[str]) -> str:
            nonlocal changed
            replacement = props.get(m.group(1))
            if replacement:
                changed = True
                return replacement
            return m.group(0)

        current = _PLACEHOLDER_RE.sub(_sub, current)
        if not changed:
            break
    return current


def _normalize_version(value: str | None, props: Mapping[str, str]) -> str:
    """Resolve and normalize a Maven version string.

    Rules:
      - Missing version => "Unknown"
      - If placeholders remain after resolution (e.g. "${x.y}"), treat as unresolved => "Unknown"
    """
    if value is None:
        return UNKNOWN_VERSION

    resolved = _resolve_placeholders(value, props).strip()
    if not resolved or _PLACEHOLDER_RE.search(resolved):
        return UNKNOWN_VERSION
    return resolved


def _parse_properties(root: etree._Element) -> dict[str, str]:
    props: dict[str, str] = {}
    for n in root.xpath(f"{_PROJECT}/*[local-name()='properties']/*"):
        if not isinstance(n, etree._Element):
            continue
        key = etree.QName(n).localname
        val = (n.text or "").strip()
        if key and val:
            props[key] = val
    return props


def _parse_dependency_nodes(
    nodes: list[etree._Element], props: Mapping[str, str]
) -> list[Dependency]:
    deps: list[Dependency] = []
    for dep in nodes:
        group_id = _text_first(dep, "./*[local-name()='groupId']")
        artifact_id = _text_first(dep, "./*[local-name()='artifactId']")
        if group_id is None or artifact_id is None:
            continue

        version = _normalize_version(_text_first(dep, "./*[local-name()='version']"), props)
        deps.append(
            Dependency(
                coordinate=ModuleCoordinate.from_artifact_id(
                    _resolve_placeholders(group_id, props), artifact_id, version
                ),
                scope=_text_first(dep, "./*[local-name()='scope']"),
                optional=_bool_text(_text_first(dep, "./*[local-name()='optional']")),
            )
        )
    return deps


def parse_pom(path: str | Path) -> MavenProject:
    """Parse a Maven pom.xml into its declared dependencies and child modules.

    Notes:
        - Namespace handling: uses `local-name()` XPath so it works with or without XML namespaces.
        - Property placeholders like `${...}` are resolved when possible.
          If a version cannot be resolved, it is stored as "Unknown".
        - groupId and version fall back to the <parent> declaration.
        - <dependencyManagement> entries are not dependencies; they only
          contribute to `managed_versions`.

    Args:
        path: Path to a pom.xml.

    Raises:
        PomModelError: If required fields are missing.

    Returns:
        A `MavenProject`.
    """
    pom_path = Path(path)
    root = _parse_xml(pom_path)

    raw_group_id = _text_first(root, f"{_PROJECT}/*[local-name()='groupId']")
    raw_artifact_id = _text_first(root, f"{_PROJECT}/*[local-name()='artifactId']")
    raw_version = _text_first(root, f"{_PROJECT}/*[local-name()='version']")

    parent_group_id = _text_first(root, f"{_PROJECT}/*[local-name()='parent']/*[local-name()='groupId']")
    parent_version = _text_first(root, f"{_PROJECT}/*[local-name()='parent']/*[local-name()='version']")

    if raw_artifact_id is None:
        raise PomModelError(f"Missing required <artifactId> in {pom_path}")

    raw_group_id = raw_group_id or parent_group_id
    raw_version = raw_version or parent_version

    if raw_group_id is None:
        raise PomModelError(f"Missing required <groupId> (or parent <groupId>) in {pom_path}")

    effective_version = raw_version or UNKNOWN_VERSION
    builtins: dict[str, str] = {
        "project.groupId": raw_group_id,
        "project.artifactId": raw_artifact_id,
        "project.version": effective_version,
        "pom.groupId": raw_group_id,
        "pom.artifactId": raw_artifact_id,
        "pom.version": effective_version,
        "groupId": raw_group_id,
        "artifactId": raw_artifact_id,
        "version": effective_version,
    }
    if parent_version:
        builtins["project.parent.version"] = parent_version
    merged_props = {**_parse_properties(root), **builtins}

    project = ModuleCoordinate.from_artifact_id(
        _resolve_placeholders(raw_group_id, merged_props),
        raw_artifact_id,
        _normalize_version(effective_version, merged_props),
    )

    deps = _parse_dependency_nodes(
        root.xpath(f"{_PROJECT}/*[local-name()='dependencies']/*[local-name()='dependency']"),
        merged_props,
    )
    managed = _parse_dependency_nodes(
        root.xpath(
            f"{_PROJECT}/*[local-name()='dependencyManagement']"
            "/*[local-name()='dependencies']/*[local-name()='dependency']"
        ),
        merged_props,
    )

    modules: list[str] = []
    for node in root.xpath(f"{_PROJECT}/*[local-name()='modules']/*[local-name()='module']"):
        text = (node.text or "").strip()
        if text:
            modules.append(text)

    return MavenProject(
        project=project,
        pom_path=pom_path.resolve(),
        dependencies=deps,
        modules=modules,
        managed_versions={
            m.coordinate.module_key(): m.coordinate.revision
            for m in managed
            if m.coordinate.revision != UNKNOWN_VERSION
        },
    )
