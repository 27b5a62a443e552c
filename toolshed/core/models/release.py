"""
Release models — what a source says is available.

A Release is a tagged publication point bundling named assets.
Both are request-scoped: created by a query, discarded after use,
never mutated.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ReleaseAsset(BaseModel):
    """A single named downloadable file attached to a release."""

    model_config = ConfigDict(frozen=True)

    name: str
    id: str = ""                    # opaque, source-specific identifier
    size: int = 0
    url: str = ""                   # download locator (URL, object name, path)


class Release(BaseModel):
    """A tagged release and its ordered assets."""

    model_config = ConfigDict(frozen=True)

    tag: str
    assets: tuple[ReleaseAsset, ...] = Field(default_factory=tuple)

    @property
    def asset_names(self) -> list[str]:
        return [a.name for a in self.assets]

    def get_asset(self, name: str) -> ReleaseAsset | None:
        """Look up an asset by exact name."""
        for asset in self.assets:
            if asset.name == name:
                return asset
        return None
