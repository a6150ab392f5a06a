"""Entity resolution package."""

from ideagraph.entity_resolution.resolver import (
    RESOLVER_VERSION,
    ResolutionEngine,
    ResolvedEntity,
    SourceItemResolution,
)

__all__ = [
    "RESOLVER_VERSION",
    "ResolutionEngine",
    "ResolvedEntity",
    "SourceItemResolution",
]
