"""Data types shared by the catalog, diff and merge layers.

All result objects are created fresh per call and are immutable snapshots.
``to_dict()`` produces the JSON shapes served by the HTTP API and the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ThemeRef:
    """A theme in a shop."""

    id: int
    name: str
    role: str = "unpublished"

    @property
    def is_live(self) -> bool:
        return self.role == "main"

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "role": self.role}


@dataclass(frozen=True)
class AssetRef:
    """Catalog metadata for one asset of a theme."""

    key: str
    size: int
    updated_at: str

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "size": self.size, "updated_at": self.updated_at}


@dataclass(frozen=True)
class AssetContent:
    """The body of one asset, fetched on demand."""

    key: str
    value: str | None = None


@dataclass(frozen=True)
class AssetEntryDelta:
    """A key present in both themes whose content differs (or could not be verified)."""

    key: str
    source_size: int
    target_size: int
    source_updated_at: str
    target_updated_at: str
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "key": self.key,
            "sourceSize": self.source_size,
            "targetSize": self.target_size,
            "sourceUpdated": self.source_updated_at,
            "targetUpdated": self.target_updated_at,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class CompareSummary:
    added: int
    modified: int
    deleted: int

    @property
    def total(self) -> int:
        # Deleted keys are informational and never merged
        return self.added + self.modified

    def to_dict(self) -> dict[str, int]:
        return {
            "added": self.added,
            "modified": self.modified,
            "deleted": self.deleted,
            "total": self.total,
        }


@dataclass(frozen=True)
class DifferenceSet:
    """Result of comparing the content assets of two themes."""

    added: tuple[AssetRef, ...] = ()
    modified: tuple[AssetEntryDelta, ...] = ()
    deleted: tuple[AssetRef, ...] = ()

    @property
    def summary(self) -> CompareSummary:
        return CompareSummary(
            added=len(self.added),
            modified=len(self.modified),
            deleted=len(self.deleted),
        )

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.modified)

    @property
    def actionable_keys(self) -> list[str]:
        """Keys that a merge could propagate (added and modified)."""
        return [a.key for a in self.added] + [m.key for m in self.modified]

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "differences": {
                "added": [a.to_dict() for a in self.added],
                "modified": [m.to_dict() for m in self.modified],
                "deleted": [d.to_dict() for d in self.deleted],
            },
        }


@dataclass(frozen=True)
class FileDiff:
    """Side-by-side view of one asset in two themes."""

    key: str
    source: str | None
    target: str | None

    @property
    def are_equal(self) -> bool:
        return self.source == self.target

    def to_dict(self) -> dict[str, Any]:
        return {
            "fileKey": self.key,
            "source": self.source,
            "target": self.target,
            "areEqual": self.are_equal,
        }


@dataclass(frozen=True)
class MergeFailure:
    key: str
    error: str

    def to_dict(self) -> dict[str, str]:
        return {"fileKey": self.key, "error": self.error}


@dataclass
class MergeLedger:
    """Per-key outcome of a merge. Append-only while the merge runs."""

    success: list[str] = field(default_factory=list)
    failed: list[MergeFailure] = field(default_factory=list)

    def record_success(self, key: str) -> None:
        self.success.append(key)

    def record_failure(self, key: str, error: str) -> None:
        self.failed.append(MergeFailure(key=key, error=error))

    @property
    def total(self) -> int:
        return len(self.success) + len(self.failed)

    @property
    def summary(self) -> dict[str, int]:
        return {
            "total": self.total,
            "successful": len(self.success),
            "failed": len(self.failed),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "results": {
                "success": list(self.success),
                "failed": [f.to_dict() for f in self.failed],
            },
        }
