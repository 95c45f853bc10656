"""Deletion statistics dataclass."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class DeletionStats:
    """Outcome of one batch deletion."""

    deleted: int = 0
    failed: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"deleted": self.deleted, "failed": self.failed}
