"""Service layer: catalog cache, draw rules and the catalog manager."""

from .cache import CatalogSnapshot, FortuneCatalogCache
from .catalog_manager import CatalogManager
from .draw_service import (
    ConflictRetryable,
    CooldownActive,
    DrawOutcome,
    DrawService,
    DrawSuccess,
    PoolExhausted,
    ServiceFailure,
)

__all__ = [
    "CatalogSnapshot",
    "FortuneCatalogCache",
    "CatalogManager",
    "DrawService",
    "DrawOutcome",
    "DrawSuccess",
    "CooldownActive",
    "PoolExhausted",
    "ConflictRetryable",
    "ServiceFailure",
]
