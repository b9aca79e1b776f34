"""Read, merge and write `.sublime-project` files."""

from __future__ import annotations

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from sublime_sources.exceptions import DescriptorParseError, DescriptorWriteError
from sublime_sources.models import ProjectDescriptor, ProjectFolder

PROJECT_FILE_SUFFIX = ".sublime-project"


def merge_project(
    existing: ProjectDescriptor | None,
    root_folder: ProjectFolder,
    external_folder: ProjectFolder,
) -> ProjectDescriptor:
    """Add the external sources folder to a project.

    Without an existing project, the result lists exactly the root folder and
    the external folder. An existing project that already has a folder with the
    external folder's path is returned as is. Otherwise the external folder is
    appended and everything else is carried over untouched; the root folder is
    not re-added, so folders removed by hand stay removed.
    """
    if existing is None:
        return ProjectDescriptor(folders=[root_folder, external_folder])

    if existing.has_folder(external_folder.path):
        return existing

    return existing.model_copy(update={"folders": [*existing.folders, external_folder]})


def _folder_to_dict(folder: ProjectFolder) -> dict[str, Any]:
    data = folder.model_dump(exclude_unset=True)
    data.update(folder.model_extra or {})
    return data


def project_to_dict(project: ProjectDescriptor) -> dict[str, Any]:
    data: dict[str, Any] = {
        "folders": [_folder_to_dict(f) for f in project.folders],
        "settings": project.settings,
        "build_systems": project.build_systems,
    }
    data.update(project.model_extra or {})
    return data


def dump_project(project: ProjectDescriptor) -> str:
    """Serialize a project to the JSON text written to disk."""
    return json.dumps(project_to_dict(project), indent=4, ensure_ascii=False) + "\n"


def parse_project(text: str, source: str = "<string>") -> ProjectDescriptor:
    """Parse project JSON.

    Raises:
        DescriptorParseError: If the text is not JSON or not a project object.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DescriptorParseError(f"Project file is not valid JSON: {source}: {exc}") from exc

    if not isinstance(data, dict):
        raise DescriptorParseError(f"Project file must contain a JSON object: {source}")
    try:
        return ProjectDescriptor.model_validate(data)
    except ValidationError as exc:
        raise DescriptorParseError(f"Invalid project file {source}: {exc}") from exc


def read_project_text(path: Path) -> str:
    """Read the raw text of a project file.

    Raises:
        DescriptorParseError: If the file cannot be read as UTF-8.
    """
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DescriptorParseError(f"Cannot read project file {path}: {exc}") from exc


def load_project(path: Path) -> ProjectDescriptor:
    """Load an existing project file.

    Raises:
        DescriptorParseError: If the file cannot be read or interpreted.
    """
    return parse_project(read_project_text(path), str(path))


def write_project(path: Path, project: ProjectDescriptor) -> Path:
    """Write the project file atomically.

    The JSON goes to a temporary file next to `path` which then replaces it, so
    an interrupted write never leaves a truncated project file behind.

    Raises:
        DescriptorWriteError: If the file cannot be written.
    """
    content = dump_project(project)
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        if path.exists():
            shutil.copymode(path, tmp_name)
        else:
            os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise DescriptorWriteError(f"Unable to write project file {path}: {exc}") from exc
    return path
