"""Expiry sweeper for locally checked-out rule documents.

Each location is processed on its own: a missing file is skipped and a
corrupt one is logged and left alone, so one bad document never blocks
the others.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from shortlink.app.core.config import Settings
from shortlink.app.core.logging import get_log_context, get_logger
from shortlink.app.exceptions import DocumentDecodeError
from shortlink.app.services import rule_document

logger = get_logger(__name__)


@dataclass(frozen=True)
class SweepLocation:
    path: Path
    binding_name: str


def sweep_locations_from_settings(config: Settings, root: Path | str = ".") -> list[SweepLocation]:
    """The intermediate and direct tables under a checkout root."""
    root = Path(root)
    return [
        SweepLocation(root / config.intermediate_rules_path, config.intermediate_binding),
        SweepLocation(root / config.direct_rules_path, config.direct_binding),
    ]


def clean_expired_rules(
    path: Path | str,
    binding_name: str,
    now: datetime | None = None,
) -> bool:
    """Drop expired entries from one document.

    Returns:
        True if the document was rewritten
    """
    path = Path(path)
    log_context = get_log_context(location=str(path))

    if not path.exists():
        return False

    try:
        rules = rule_document.decode(path.read_text(encoding="utf-8"))
    except (DocumentDecodeError, UnicodeDecodeError) as e:
        logger.error(f"Error parsing {path}: {e}", extra=log_context)
        return False
    except OSError as e:
        logger.error(f"Error reading {path}: {e}", extra=log_context)
        return False

    now = now or datetime.now(timezone.utc)
    kept: rule_document.RuleTable = {}
    changed = False

    for key, entry in rules.items():
        expired_at = entry.get("expired_at") if isinstance(entry, dict) else None
        expires = rule_document.parse_expiry(expired_at)
        if expires is not None and expires < now:
            logger.info(
                f"Removing expired rule: {key} (expired at {expired_at})",
                extra=log_context,
            )
            changed = True
            continue
        kept[key] = entry

    if changed:
        path.write_text(rule_document.encode(kept, binding_name), encoding="utf-8")
        logger.info(f"Updated {path}", extra=log_context)
    else:
        logger.info(f"No expired rules found in {path}", extra=log_context)

    return changed


def sweep(
    locations: Iterable[SweepLocation],
    now: datetime | None = None,
) -> dict[Path, bool]:
    """Sweep every location against a single reference time.

    Returns:
        Mapping of location path to whether it was rewritten
    """
    now = now or datetime.now(timezone.utc)
    return {
        location.path: clean_expired_rules(location.path, location.binding_name, now=now)
        for location in locations
    }
