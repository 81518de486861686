"""
ModelInfo: an entry of the ``GET /models`` listing.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class ModelInfo:
    """Selectable upstream model."""

    id: str
    name: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name}


__all__ = ["ModelInfo"]
