"""Select the source archives to extract from the resolved artifacts."""

from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence

from sublime_sources.models import ArtifactType, ModuleCoordinate, ResolvedArtifact


def matches_declared(artifact_name: str, declared_names: Iterable[str]) -> bool:
    """True when some declared name is a literal prefix of `artifact_name`.

    A prefix rather than an exact match, so that `cats-core_2.13` is covered
    by a declaration of `cats-core`. It also lets `foo` cover `foo-extra`.
    """
    return any(artifact_name.startswith(name) for name in declared_names)


def select_source_artifacts(
    declared: Collection[ModuleCoordinate],
    resolved: Sequence[ResolvedArtifact],
    transitive: bool,
) -> list[ResolvedArtifact]:
    """Keep the source artifacts of the declared dependencies.

    Args:
        declared: Dependencies declared by the modules of the build.
        resolved: Everything the resolver returned, transitive artifacts included.
        transitive: Keep the sources of every resolved artifact, not only declared ones.

    Returns:
        The matching `sources` artifacts, in input order.
    """
    if transitive:
        candidates = list(resolved)
    else:
        names = {c.name for c in declared}
        candidates = [r for r in resolved if matches_declared(r.artifact.name, names)]
    return [r for r in candidates if r.artifact.type == ArtifactType.SOURCES]
