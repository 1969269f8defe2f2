from __future__ import annotations

from typing import Protocol


class CodeSequenceRepository(Protocol):
    def next_value(self, *, organization_id: int, prefix: str, year: int) -> int:
        """Atomically increment and return the counter for (organization, prefix, year)."""

        raise NotImplementedError
