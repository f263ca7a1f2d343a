"""Sources: the units of work a dashboard run builds."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

HEAD = "HEAD"
LATEST = "latest"


class RegistrySource(BaseModel):
    """A mooncake from the registry, built once per version."""

    kind: Literal["registry"] = "registry"
    name: str
    versions: list[str] = Field(default_factory=list)
    index: int

    model_config = ConfigDict(frozen=True)

    @property
    def targets(self) -> list[str | None]:
        """Checkout locators in build order; None means no checkout."""
        return list(self.versions) or [None]

    def label(self, target: str | None = None) -> str:
        return f"{self.name}@{target}" if target else self.name


class GitSource(BaseModel):
    """A git repository, built once per revision."""

    kind: Literal["git"] = "git"
    url: str
    revisions: list[str] = Field(default_factory=list)
    index: int

    model_config = ConfigDict(frozen=True)

    @property
    def targets(self) -> list[str | None]:
        """Checkout locators in build order; None means no checkout.

        An empty revision list builds the cloned default branch once.
        """
        return list(self.revisions) or [None]

    def label(self, target: str | None = None) -> str:
        return f"{self.url}@{target}" if target else self.url


Source = Annotated[RegistrySource | GitSource, Field(discriminator="kind")]
