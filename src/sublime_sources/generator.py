"""Generate or update the Sublime project of a Maven build."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from sublime_sources.config import GeneratorConfig, GeneratorSettings
from sublime_sources.exceptions import ResolutionError
from sublime_sources.extract import ExtractionReport, extract_sources, remove_directory
from sublime_sources.filtering import select_source_artifacts
from sublime_sources.models import (
    MavenProject,
    ModuleCoordinate,
    ProjectDescriptor,
    ProjectFolder,
    ResolvedArtifact,
)
from sublime_sources.project import dump_project, merge_project, parse_project, read_project_text, write_project
from sublime_sources.resolver import ArtifactResolver, LocalRepositoryResolver
from sublime_sources.scanner import declared_dependencies, discover_modules

logger = logging.getLogger(__name__)


@dataclass
class Build:
    """The modules of a build together with the configuration derived for it."""

    config: GeneratorConfig
    modules: list[MavenProject]

    @property
    def root(self) -> MavenProject:
        return self.modules[0]


@dataclass
class GenerationResult:
    config: GeneratorConfig
    project: ProjectDescriptor
    declared: list[ModuleCoordinate]
    selected: list[ResolvedArtifact]
    extraction: ExtractionReport
    resolution_warnings: list[str] = field(default_factory=list)
    changed: bool = True

    @property
    def project_file(self) -> Path:
        return self.config.project_file


def load_build(root: Path, settings: GeneratorSettings | None = None) -> Build:
    """Discover the modules under `root` and derive the run configuration.

    The root project's artifact id is the default project name.
    """
    modules = discover_modules(root)
    root_dir = root if root.is_dir() else root.parent
    config = (settings or GeneratorSettings()).derive(root_dir, modules[0].project.artifact_id)
    return Build(config=config, modules=modules)


def resolve_artifacts(modules: list[MavenProject], resolver: ArtifactResolver) -> tuple[list[ResolvedArtifact], list[str]]:
    """Resolve every module, de-duplicating the accumulated artifacts.

    Dependencies between modules of the build are not resolved. A module that
    fails to resolve contributes no artifacts and a warning.
    """
    own = {m.project.module_key() for m in modules}
    resolved: list[ResolvedArtifact] = []
    warnings: list[str] = []
    for module in modules:
        external = module.model_copy(
            update={"dependencies": [d for d in module.dependencies if d.coordinate.module_key() not in own]}
        )
        try:
            resolved.extend(resolver.resolve(external))
        except ResolutionError as exc:
            message = f"{module.project.compact()}: {exc}"
            logger.warning("No artifacts for module %s", message)
            warnings.append(message)
    return list(dict.fromkeys(resolved)), warnings


def generate_project(build: Build, resolver: ArtifactResolver | None = None) -> GenerationResult:
    """Extract dependency sources and write the project file.

    Steps: resolve artifacts of all modules, keep the declared sources, read
    the existing project file (if any), reset and fill the external sources
    directory, then merge and write the project file. The project file is only
    written once everything before it succeeded.

    Raises:
        DescriptorParseError: If an existing project file cannot be interpreted.
        ExtractionError: If the external sources directory cannot be prepared.
        DescriptorWriteError: If the project file cannot be written.
    """
    config = build.config
    resolver = resolver or LocalRepositoryResolver(config.repository)

    logger.info("Generating Sublime project for root directory: %s", config.root_dir)
    logger.info("Getting dependency libraries sources transitively: %s", config.transitive)
    logger.info("Saving external sources to: %s", config.external_source_directory)

    declared = declared_dependencies(build.modules)
    resolved, warnings = resolve_artifacts(build.modules, resolver)
    selected = select_source_artifacts(set(declared), resolved, config.transitive)

    logger.info("Adding the following to external libraries:")
    for jar in selected:
        logger.info("  %s", jar.file_name)

    # Read before touching the filesystem so a broken file aborts the run early.
    existing_text: str | None = None
    existing: ProjectDescriptor | None = None
    if config.project_file.exists():
        existing_text = read_project_text(config.project_file)
        existing = parse_project(existing_text, str(config.project_file))

    logger.info("Extracting jars to external sources directory")
    extraction = extract_sources(config.external_source_directory, selected)

    project = merge_project(
        existing,
        root_folder=ProjectFolder(path=str(config.root_dir)),
        external_folder=ProjectFolder(path=str(config.external_source_directory)),
    )
    changed = existing_text != dump_project(project)

    logger.info("Writing project to file: %s", config.project_file)
    write_project(config.project_file, project)

    return GenerationResult(
        config=config,
        project=project,
        declared=declared,
        selected=selected,
        extraction=extraction,
        resolution_warnings=warnings,
        changed=changed,
    )


def clean_external_sources(config: GeneratorConfig) -> bool:
    """Delete the external sources directory. Returns False if it did not exist."""
    removed = remove_directory(config.external_source_directory)
    if removed:
        logger.info("Removed %s", config.external_source_directory)
    return removed
