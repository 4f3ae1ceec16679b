"""Versioned remote document store.

The store is the only concurrency primitive of the rule table: a write is
accepted only if the sha supplied with it still names the current blob.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from shortlink.app.core.logging import get_log_context, get_logger
from shortlink.app.exceptions import StoreReadError, StoreWriteError

logger = get_logger(__name__)


@dataclass(frozen=True)
class StoredDocument:
    """Document text together with the version token it was read at."""
    text: str
    sha: str


class ContentStore(Protocol):
    """Capability used by the mutation protocol to read and write documents."""

    async def read(self, path: str) -> StoredDocument:
        ...

    async def write(self, path: str, text: str, sha: str, message: str) -> str:
        """Replace the document at ``path`` if ``sha`` is still current.

        Returns:
            Reference to the revision created by the write
        """
        ...


def encode_content(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_content(content: str) -> str:
    # GitHub wraps base64 payloads at 60 columns.
    return base64.b64decode("".join(content.split())).decode("utf-8")


class GitHubContentStore:
    """ContentStore backed by the GitHub repository contents API.

    Args:
        http_client: Shared client; the store never closes it
        owner: Repository owner
        repo: Repository name
        branch: Branch every read and write targets
        token: Token with contents write permission
        api_base_url: GitHub API root
        timeout: Applied to every request
        user_agent: Sent with every request (GitHub rejects requests without one)
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        owner: str,
        repo: str,
        branch: str,
        token: str,
        api_base_url: str = "https://api.github.com",
        timeout: httpx.Timeout | float = 15.0,
        user_agent: str = "shortlink-rule-store",
    ):
        self._http_client = http_client
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": user_agent,
        }

    def _contents_url(self, path: str) -> str:
        return f"{self.api_base_url}/repos/{self.owner}/{self.repo}/contents/{path.lstrip('/')}"

    async def read(self, path: str) -> StoredDocument:
        try:
            resp = await self._http_client.get(
                self._contents_url(path),
                params={"ref": self.branch},
                headers=self.headers,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise StoreReadError(f"Timed out reading {path}", timed_out=True) from e
        except httpx.HTTPError as e:
            raise StoreReadError(f"Failed to read {path}: {e}") from e

        if resp.is_error:
            logger.error(
                f"GitHub fetch error: {resp.text[:200]}",
                extra=get_log_context(upstream_status=resp.status_code),
            )
            raise StoreReadError(
                f"Failed to fetch file from GitHub: {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
            return StoredDocument(text=decode_content(data["content"]), sha=data["sha"])
        except (KeyError, TypeError, ValueError) as e:
            raise StoreReadError(
                f"Unexpected contents payload for {path}", status_code=resp.status_code
            ) from e

    async def write(self, path: str, text: str, sha: str, message: str) -> str:
        payload = {
            "message": message,
            "content": encode_content(text),
            "sha": sha,
            "branch": self.branch,
        }
        try:
            resp = await self._http_client.put(
                self._contents_url(path),
                json=payload,
                headers=self.headers,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise StoreWriteError(f"Timed out writing {path}", timed_out=True) from e
        except httpx.HTTPError as e:
            raise StoreWriteError(f"Failed to write {path}: {e}") from e

        if resp.is_error:
            # 409 means the sha no longer matches the branch head
            logger.error(
                f"GitHub commit error: {resp.text[:200]}",
                extra=get_log_context(upstream_status=resp.status_code),
            )
            raise StoreWriteError(
                f"Failed to commit to GitHub: {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError:
            # The commit landed; only the revision is unknown
            data = None
        return _revision_of(data, fallback=self.branch)


def _revision_of(data: Any, fallback: str) -> str:
    if isinstance(data, dict):
        for key in ("commit", "content"):
            section = data.get(key)
            if isinstance(section, dict) and section.get("sha"):
                return section["sha"]
    return fallback
