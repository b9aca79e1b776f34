"""Rich rendering utilities for modules and generation results."""

from __future__ import annotations

from collections.abc import Iterable

from rich.tree import Tree

from sublime_sources.generator import GenerationResult
from sublime_sources.models import MavenProject


def build_dependency_tree(modules: Iterable[MavenProject]) -> Tree:
    """Build a Rich Tree of every module and its declared dependencies.

    Args:
        modules: Parsed modules, root first.

    Returns:
        A Rich Tree object for rendering.
    """
    modules = list(modules)
    root = Tree(f"[bold]{modules[0].project.compact()}[/bold]" if modules else "[dim]No modules[/dim]")
    for module in modules:
        branch = root.add(f"[cyan]{module.project.artifact_id}[/cyan]")
        if not module.dependencies:
            branch.add("[dim]No direct dependencies found[/dim]")
            continue
        for dep in module.dependencies:
            branch.add(dep.label())
    return root


def build_result_tree(result: GenerationResult) -> Tree:
    """Summarize a generation run: project file, extracted archives and warnings."""
    status = "updated" if result.changed else "unchanged"
    root = Tree(f"[bold]{result.project_file}[/bold] [dim]({status})[/dim]")

    extracted = root.add(f"{result.extraction.target_dir}")
    if not result.extraction.extracted:
        extracted.add("[dim]No source archives found[/dim]")
    for dest_name, archives in result.extraction.extracted.items():
        node = extracted.add(dest_name)
        if dest_name in result.extraction.collisions:
            for archive in archives:
                node.add(f"[yellow]{archive.name}[/yellow]")

    warnings = [*result.resolution_warnings]
    warnings += [f"{f.path}: {f.reason}" for f in result.extraction.read_only_failures]
    if warnings:
        branch = root.add("[yellow]warnings[/yellow]")
        for w in warnings:
            branch.add(w)
    return root
