"""Short link creation against the versioned rule document.

Each call reads the document fresh, validates the new entry against it and
commits the result with the sha it was read at. Concurrent writers are
arbitrated by the store; the loser gets ``UpstreamError(COMMIT_FAILED)`` and
is expected to re-issue the whole request.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

from shortlink.app.core.config import Settings
from shortlink.app.core.logging import get_log_context, get_logger
from shortlink.app.exceptions import (
    ConfigurationError,
    ConflictError,
    DocumentDecodeError,
    StoreReadError,
    StoreWriteError,
    UpstreamError,
    UpstreamReason,
    ValidationError,
    ValidationReason,
)
from shortlink.app.services import rule_document
from shortlink.app.services.content_store import ContentStore

logger = get_logger(__name__)

PATHNAME_MIN_LENGTH = 5
PATHNAME_MAX_LENGTH = 10
URL_MAX_LENGTH = 300

_PATHNAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_HOST_REQUIRED_SCHEMES = frozenset(("http", "https", "ftp", "ws", "wss"))


@dataclass(frozen=True)
class LinkServiceConfig:
    """Everything the mutation protocol needs to know about its target."""
    owner: str
    repo: str
    branch: str
    token: str
    table_path: str
    binding_name: str
    table: str = "intermediate"
    base_domain: str = ""
    web_base_url: str = "https://github.com"

    @classmethod
    def from_settings(cls, config: Settings) -> "LinkServiceConfig":
        """Build the config for the intermediate table.

        Raises:
            ConfigurationError: Token, owner or repository is missing
        """
        missing = [
            name
            for name, value in (
                ("GITHUB_TOKEN", config.github_token),
                ("GITHUB_OWNER", config.github_owner),
                ("GITHUB_REPO", config.github_repo),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(missing)
        return cls(
            owner=config.github_owner,
            repo=config.github_repo,
            branch=config.github_branch or "main",
            token=config.github_token,
            table_path=config.intermediate_rules_path,
            binding_name=config.intermediate_binding,
            base_domain=config.base_domain,
            web_base_url=config.github_web_base_url,
        )


@dataclass(frozen=True)
class CreatedLink:
    short_url: str | None
    revision: str
    commit_url: str


def validate_pathname(pathname: Any) -> str:
    if (
        not isinstance(pathname, str)
        or not PATHNAME_MIN_LENGTH <= len(pathname) <= PATHNAME_MAX_LENGTH
    ):
        raise ValidationError(
            ValidationReason.INVALID_PATHNAME,
            f"Invalid pathname ({PATHNAME_MIN_LENGTH}-{PATHNAME_MAX_LENGTH} chars)",
        )
    if not _PATHNAME_RE.match(pathname):
        raise ValidationError(
            ValidationReason.INVALID_PATHNAME, "Invalid characters in pathname"
        )
    return pathname


def validate_url(url: Any) -> str:
    if not isinstance(url, str) or not url or len(url) > URL_MAX_LENGTH:
        raise ValidationError(
            ValidationReason.INVALID_URL, f"Invalid URL (max {URL_MAX_LENGTH} chars)"
        )
    if not _is_absolute_url(url):
        raise ValidationError(ValidationReason.INVALID_URL, "Invalid URL format")
    return url


def _is_absolute_url(url: str) -> bool:
    if url != url.strip() or any(ch.isspace() for ch in url):
        return False
    try:
        parts = urlsplit(url)
        parts.port  # raises ValueError for a malformed port
    except ValueError:
        return False
    if not parts.scheme or not url[len(parts.scheme) + 1:]:
        return False
    if parts.scheme.lower() in _HOST_REQUIRED_SCHEMES:
        return bool(parts.hostname)
    return True


def validate_expiry(expired_at: Any) -> str:
    """Validate a Unix timestamp (seconds) and return its stored form."""
    # bool is an int subclass; 0 is treated as absent
    if isinstance(expired_at, bool) or not isinstance(expired_at, (int, float)) or not expired_at:
        raise ValidationError(
            ValidationReason.INVALID_EXPIRY, "Invalid expiration timestamp"
        )
    try:
        return rule_document.format_expiry(expired_at)
    except ValueError as e:
        raise ValidationError(ValidationReason.INVALID_EXPIRY, "Invalid timestamp") from e


class LinkService:
    """Creates short links in one rule table."""

    def __init__(self, config: LinkServiceConfig, store: ContentStore):
        self.config = config
        self.store = store

    def short_url_for(self, pathname: str) -> str | None:
        if not self.config.base_domain:
            return None
        return f"https://{self.config.base_domain}/{pathname}"

    def commit_url_for(self, revision: str) -> str:
        base = self.config.web_base_url.rstrip("/")
        return f"{base}/{self.config.owner}/{self.config.repo}/commit/{revision}"

    async def create_rule(self, pathname: Any, url: Any, expired_at: Any) -> CreatedLink:
        """Add ``/pathname -> url`` to the rule table.

        Raises:
            ValidationError: Input rejected, no remote call made
            ConflictError: The path already exists, nothing written
            UpstreamError: Read, decode or conditional write failed
        """
        pathname = validate_pathname(pathname)
        url = validate_url(url)
        expires = validate_expiry(expired_at)

        log_context = get_log_context(link_path=pathname, table=self.config.table)
        path = self.config.table_path

        try:
            document = await self.store.read(path)
        except StoreReadError as e:
            raise UpstreamError(
                UpstreamReason.FETCH_FAILED, e.message, upstream_status=e.status_code
            ) from e

        try:
            rules = rule_document.decode(document.text)
        except DocumentDecodeError as e:
            logger.error(f"Rule document {path} is corrupt: {e}", extra=log_context)
            raise UpstreamError(
                UpstreamReason.CORRUPT_DOCUMENT, "Failed to parse file content"
            ) from e

        path_key = f"/{pathname}"
        if path_key in rules:
            raise ConflictError(path_key)

        rules[path_key] = {"url": url, "expired_at": expires}
        text = rule_document.encode(rules, self.config.binding_name)

        try:
            revision = await self.store.write(
                path, text, document.sha, message=f"Add short link: {pathname}"
            )
        except StoreWriteError as e:
            raise UpstreamError(
                UpstreamReason.COMMIT_FAILED, "Failed to commit to GitHub",
                upstream_status=e.status_code,
            ) from e

        logger.info(f"Short link created at {revision}", extra=log_context)
        return CreatedLink(
            short_url=self.short_url_for(pathname),
            revision=revision,
            commit_url=self.commit_url_for(revision),
        )
