"""Typer CLI entry point for sublime-sources."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from sublime_sources.config import GeneratorSettings
from sublime_sources.exceptions import SublimeSourcesError
from sublime_sources.generator import clean_external_sources, generate_project, load_build
from sublime_sources.scanner import discover_modules
from sublime_sources.visualize import build_dependency_tree, build_result_tree

app = typer.Typer(add_completion=False, help="Sublime Text projects with dependency sources for Maven builds.")
console = Console()

RootArg = Annotated[
    Path,
    typer.Argument(help="Build root directory (holding pom.xml) or a root POM file."),
]

DirNameOpt = Annotated[Optional[str], typer.Option("--dir-name", help="External sources directory name.")]
DirParentOpt = Annotated[Optional[Path], typer.Option("--dir-parent", help="Parent of the external sources directory.")]
DirOpt = Annotated[Optional[Path], typer.Option("--dir", help="External sources directory.")]
VerboseOpt = Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging.")]


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _fail(exc: Exception) -> typer.Exit:
    console.print(f"[bold red]Error:[/bold red] {exc}")
    return typer.Exit(code=1)


@app.command()
def gen(
    root: RootArg = Path("."),
    transitive: Annotated[
        Optional[bool],
        typer.Option("--transitive/--no-transitive", help="Also add sources of transitive dependencies."),
    ] = None,
    dir_name: DirNameOpt = None,
    dir_parent: DirParentOpt = None,
    directory: DirOpt = None,
    project_name: Annotated[Optional[str], typer.Option("--project-name", help="Project file base name.")] = None,
    project_dir: Annotated[Optional[Path], typer.Option("--project-dir", help="Project file directory.")] = None,
    project_file: Annotated[Optional[Path], typer.Option("--project-file", help="Project file path.")] = None,
    repository: Annotated[Optional[Path], typer.Option("--repository", help="Local Maven repository.")] = None,
    verbose: VerboseOpt = False,
) -> None:
    """Extract dependency sources and create or update the .sublime-project file."""
    _setup_logging(verbose)
    try:
        settings = GeneratorSettings.from_env().override(
            transitive=transitive,
            external_source_directory_name=dir_name,
            external_source_directory_parent=dir_parent,
            external_source_directory=directory,
            project_name=project_name,
            project_dir=project_dir,
            project_file=project_file,
            repository=repository,
        )
        result = generate_project(load_build(root, settings))
    except (SublimeSourcesError, ValueError) as exc:
        raise _fail(exc) from None

    console.print(build_result_tree(result))
    console.print(f"[green]Wrote[/green] {result.project_file}")


@app.command()
def clean(
    root: RootArg = Path("."),
    dir_name: DirNameOpt = None,
    dir_parent: DirParentOpt = None,
    directory: DirOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Delete the external sources directory."""
    _setup_logging(verbose)
    try:
        settings = GeneratorSettings.from_env().override(
            external_source_directory_name=dir_name,
            external_source_directory_parent=dir_parent,
            external_source_directory=directory,
        )
        build = load_build(root, settings)
        removed = clean_external_sources(build.config)
    except (SublimeSourcesError, ValueError) as exc:
        raise _fail(exc) from None

    if removed:
        console.print(f"[green]Removed[/green] {build.config.external_source_directory}")
    else:
        console.print(f"[dim]Nothing to remove at {build.config.external_source_directory}[/dim]")


@app.command()
def deps(root: RootArg = Path(".")) -> None:
    """Print the declared dependencies of every module."""
    try:
        modules = discover_modules(root)
    except SublimeSourcesError as exc:
        raise _fail(exc) from None
    console.print(build_dependency_tree(modules))


def main() -> None:
    """Console-script entry point."""
    app()
