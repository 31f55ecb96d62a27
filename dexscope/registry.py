"""
Venue registry – maps program ids to venue names and marks infrastructure programs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from dexscope.constants import (
    DEX_PREFIX_PATTERNS,
    DEX_PROGRAM_IDS,
    INFRASTRUCTURE_PROGRAM_IDS,
    SHORT_ID_LENGTH,
)


def short_id(program_id: str) -> str:
    """Truncated raw identifier used for unregistered programs."""
    return program_id[:SHORT_ID_LENGTH]


def discover_venue_name(program_id: str) -> str | None:
    """Guess a venue name from well-known program id prefixes."""
    for prefix, name in DEX_PREFIX_PATTERNS.items():
        if program_id.startswith(prefix):
            return name
    return None


@dataclass(frozen=True)
class VenueRegistry:
    """Immutable program id → venue name mapping plus the infrastructure set."""

    venues: Mapping[str, str] = field(default_factory=dict)
    infrastructure: frozenset[str] = frozenset()

    @classmethod
    def default(cls) -> "VenueRegistry":
        return cls(venues=dict(DEX_PROGRAM_IDS), infrastructure=INFRASTRUCTURE_PROGRAM_IDS)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def is_venue(self, program_id: str) -> bool:
        return program_id in self.venues

    def is_infrastructure(self, program_id: str) -> bool:
        return program_id in self.infrastructure

    def resolve(self, program_id: str) -> str:
        """Registered venue name, or the shortened raw id when unregistered."""
        return self.venues.get(program_id) or short_id(program_id)

    # ------------------------------------------------------------------
    # Extension (always returns a new registry)
    # ------------------------------------------------------------------

    def with_venues(self, venues: Mapping[str, str]) -> "VenueRegistry":
        return VenueRegistry(venues={**self.venues, **venues}, infrastructure=self.infrastructure)

    def with_discovered(self, program_ids: Iterable[str]) -> "VenueRegistry":
        """
        Extend the registry with every unregistered, non-infrastructure program
        whose id matches a known venue prefix.
        """
        discovered: dict[str, str] = {}
        for program_id in program_ids:
            if self.is_venue(program_id) or self.is_infrastructure(program_id):
                continue
            name = discover_venue_name(program_id)
            if name:
                discovered[program_id] = name
        if not discovered:
            return self
        return self.with_venues(discovered)
