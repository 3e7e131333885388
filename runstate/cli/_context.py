from __future__ import annotations

from dataclasses import dataclass

from runstate.config import settings


@dataclass(frozen=True)
class RunstateContext:
    """Process-wide options resolved once by the CLI callback and handed to commands."""

    root: str
    factory_backend: str

    @classmethod
    def from_settings(cls, root: str | None = None) -> RunstateContext:
        return cls(root=root or settings.ROOT, factory_backend=settings.FACTORY_BACKEND)
