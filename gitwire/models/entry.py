"""Config entry model for one wired source tree."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class CheckoutMethod(str, Enum):
    """How a remote repository is materialized locally."""

    SHALLOW = "shallow"  # depth 1, sparse-checkout limited to needed paths
    SHALLOW_NO_SPARSE = "shallow_no_sparse"  # depth 1, full tree
    PARTIAL = "partial"  # blobless clone, blobs fetched on checkout


class ConfigEntry(BaseModel):
    """One item of the ``.gitwire`` config.

    JSON field names follow the config file (``url``, ``rev``, ``src``...),
    attribute names describe what the field holds.
    """

    name: str | None = Field(default=None, description="Unique entry name")
    description: str | None = Field(default=None, alias="dsc", description="Free text")
    source_url: str = Field(..., alias="url", min_length=1, description="Remote repository URL")
    branch: str = Field(..., alias="rev", min_length=1, description="Branch or tag to fetch")
    commit_hash: str | None = Field(
        default=None, description="Pinned commit for reproducible checkouts"
    )
    source_subpath: str = Field(..., alias="src", description="Path inside the remote")
    destination_subpath: str = Field(
        ..., alias="dst", description="Path inside the consuming repository"
    )
    file_filters: tuple[str, ...] = Field(
        default=(), alias="filters", description="Globs, names or directory prefixes"
    )
    checkout_method: CheckoutMethod = Field(default=CheckoutMethod.SHALLOW, alias="mtd")
    prune: bool = Field(
        default=True, description="Delete destination files that are no longer selected"
    )

    model_config = {"populate_by_name": True, "extra": "forbid", "frozen": True}

    @field_validator("commit_hash", "name")
    @classmethod
    def _blank_is_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    @property
    def src_parts(self) -> list[str]:
        """Components of ``src`` without empty segments."""
        return split_path(self.source_subpath)

    @property
    def dst_parts(self) -> list[str]:
        """Components of ``dst`` without empty segments."""
        return split_path(self.destination_subpath)

    @property
    def is_whole_tree(self) -> bool:
        """True when ``src`` selects the remote's root directory."""
        return not self.src_parts

    def label(self, index: int) -> str:
        """Display label used in diagnostics: the name, or the 1-based position."""
        return self.name or f"#{index + 1}"

    def to_json_dict(self) -> dict:
        """Serialize back to the config file representation."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def split_path(path: str) -> list[str]:
    """Split a config path on both separator styles, dropping empty segments."""
    return [part for part in path.replace("\\", "/").split("/") if part]
