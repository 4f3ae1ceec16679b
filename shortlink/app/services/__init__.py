"""Services package for the rule store.

This package provides:
- The rule document codec
- Short link creation against the GitHub contents API
- The local expiry sweeper
"""

from shortlink.app.services.content_store import (
    ContentStore,
    GitHubContentStore,
    StoredDocument,
)
from shortlink.app.services.link_service import (
    CreatedLink,
    LinkService,
    LinkServiceConfig,
)
from shortlink.app.services.sweeper import (
    SweepLocation,
    clean_expired_rules,
    sweep,
    sweep_locations_from_settings,
)

__all__ = [
    "ContentStore",
    "GitHubContentStore",
    "StoredDocument",
    "CreatedLink",
    "LinkService",
    "LinkServiceConfig",
    "SweepLocation",
    "clean_expired_rules",
    "sweep",
    "sweep_locations_from_settings",
]
