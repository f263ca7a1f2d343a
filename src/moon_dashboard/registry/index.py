"""Local mooncakes registry index.

`moon update` mirrors the registry index under
{moon_home}/registry/index/user/{publisher}/{package}.index. Each
file holds one JSON record per published version, oldest first.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict, ValidationError

from moon_dashboard.core.errors import VersionResolutionError
from moon_dashboard.core.log import logger


class VersionLookup(Protocol):
    """What the source resolver needs from a registry."""

    def latest_version(self, name: str) -> str:
        ...

    def reload(self) -> None:
        ...


class MooncakeRecord(BaseModel):
    """One published version in the index."""

    name: str
    version: str

    model_config = ConfigDict(extra="ignore")

    @property
    def publisher(self) -> str:
        return self.name.split("/", 1)[0]


class RegistryIndex:
    """Read-only view of the on-disk registry index.

    The index is scanned on first use and cached until reload(), which
    callers invoke after `moon update` rewrites it. Records from
    excluded publishers are test fixtures and are never returned.
    """

    def __init__(self, root: Path, exclude_publishers: list[str] | None = None):
        self.root = root
        self.exclude_publishers = set(exclude_publishers or [])
        self._versions: dict[str, list[str]] | None = None

    @classmethod
    def from_moon_home(
        cls, moon_home: Path, exclude_publishers: list[str] | None = None
    ) -> "RegistryIndex":
        return cls(
            moon_home / "registry" / "index" / "user", exclude_publishers
        )

    def _load(self) -> dict[str, list[str]]:
        versions: dict[str, list[str]] = {}
        if not self.root.is_dir():
            logger.warn(f"Registry index not found at {self.root}")
            return versions

        for index_file in sorted(self.root.glob("*/*.index")):
            key = f"{index_file.parent.name}/{index_file.stem}"
            for lineno, line in enumerate(
                index_file.read_text(encoding="utf-8").splitlines(), 1
            ):
                if not line.strip():
                    continue
                try:
                    record = MooncakeRecord.model_validate(json.loads(line))
                except (json.JSONDecodeError, ValidationError) as e:
                    logger.warn(
                        "Skipping malformed index record {key}:{lineno}",
                        key=key,
                        lineno=lineno,
                        error=str(e),
                    )
                    continue
                if record.publisher in self.exclude_publishers:
                    continue
                versions.setdefault(key, []).append(record.version)

        logger.debug(f"Loaded {len(versions)} mooncakes from {self.root}")
        return versions

    def reload(self) -> None:
        """Forget the cached scan; the next lookup reads the tree again."""
        self._versions = None

    def all_mooncakes(self) -> dict[str, list[str]]:
        """Versions of every known mooncake, in publish order."""
        if self._versions is None:
            self._versions = self._load()
        return self._versions

    def versions(self, name: str) -> list[str]:
        return list(self.all_mooncakes().get(name, []))

    def latest_version(self, name: str) -> str:
        """Most recently published version of name.

        Raises:
            VersionResolutionError: If name has no versions
        """
        versions = self.all_mooncakes().get(name)
        if not versions:
            raise VersionResolutionError(name)
        return versions[-1]
