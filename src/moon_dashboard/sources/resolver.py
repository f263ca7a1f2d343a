"""Turn source list input into index-tagged Source records.

Input lines look like:

    # comment
    https://github.com/moonbitlang/core
    https://github.com/moonbitlang/core 1a2b3c4 5d6e7f8
    moonbitlang/x
    moonbitlang/x 0.4.6 latest

A line starting with https:// is a git source followed by revisions
(HEAD when none are given). Anything else is a registry name followed
by versions (latest when none are given).
"""

from __future__ import annotations

from pathlib import Path

from moon_dashboard.core.errors import InputError
from moon_dashboard.core.log import logger
from moon_dashboard.core.source import (
    HEAD,
    LATEST,
    GitSource,
    RegistrySource,
    Source,
)
from moon_dashboard.registry.index import VersionLookup

GIT_PREFIX = "https://"


def parse_line(line: str, index: int) -> Source | None:
    """Parse one input line; blank lines and comments give None.

    Registry versions are left unresolved here, so `latest` survives.
    """
    text = line.strip()
    if not text or text.startswith("#"):
        return None

    head, *rest = text.split()
    if head.startswith(GIT_PREFIX):
        return GitSource(url=head, revisions=rest or [HEAD], index=index)
    return RegistrySource(name=head, versions=rest or [LATEST], index=index)


def resolve_versions(source: RegistrySource, registry: VersionLookup) -> RegistrySource:
    """Replace `latest` selectors, then dedupe and sort the versions.

    Raises:
        VersionResolutionError: If a `latest` name is unknown
    """
    versions = {
        registry.latest_version(source.name) if v == LATEST else v
        for v in source.versions
    }
    return source.model_copy(update={"versions": sorted(versions)})


def parse_lines(lines: list[str], start: int = 0) -> list[Source]:
    """Parse lines into sources indexed from start, unresolved."""
    sources: list[Source] = []
    for line in lines:
        source = parse_line(line, start + len(sources))
        if source is not None:
            sources.append(source)
    return sources


def resolve(
    repo_url: str | None,
    file: Path | None,
    registry: VersionLookup,
) -> list[Source]:
    """Build the run's source list.

    --repo-url, when given, comes first at index 0 with no revisions
    (build the default branch once). File sources follow in file
    order. The position in the returned list is each source's index.

    Raises:
        InputError: If file cannot be read
        VersionResolutionError: If a `latest` name is unknown
    """
    sources: list[Source] = []
    if repo_url:
        sources.append(GitSource(url=repo_url, revisions=[], index=0))

    if file is not None:
        try:
            content = Path(file).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise InputError(f"cannot read source list {file}: {e}") from e

        for source in parse_lines(content.splitlines(), start=len(sources)):
            if isinstance(source, RegistrySource):
                source = resolve_versions(source, registry)
            sources.append(source)

    logger.info(f"Resolved {len(sources)} sources")
    for source in sources:
        logger.debug(
            f"Source {source.index}",
            source=source.label(),
            targets=[t for t in source.targets if t],
        )
    return sources
