"""Shared fixtures for the rule store tests."""

import hashlib
import logging

import pytest

from shortlink.app.exceptions import StoreReadError, StoreWriteError
from shortlink.app.services.content_store import StoredDocument
from shortlink.app.services.link_service import LinkService, LinkServiceConfig
from shortlink.app.services.rule_document import encode

RULES_PATH = "js/rules_intermediate.js"
BINDING = "RULES_INTERMEDIATE"


def _sha(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


class InMemoryContentStore:
    """ContentStore fake with the same sha precondition as GitHub."""

    def __init__(self, documents: dict[str, str] | None = None):
        self.documents: dict[str, tuple[str, str]] = {
            path: (text, _sha(text)) for path, text in (documents or {}).items()
        }
        self.reads: list[str] = []
        self.writes: list[dict] = []
        self._revision = 0

    def replace(self, path: str, text: str) -> None:
        """Simulate a commit made by another writer."""
        self.documents[path] = (text, _sha(text))

    def text(self, path: str) -> str:
        return self.documents[path][0]

    async def read(self, path: str) -> StoredDocument:
        self.reads.append(path)
        if path not in self.documents:
            raise StoreReadError("Failed to fetch file from GitHub: 404", status_code=404)
        text, sha = self.documents[path]
        return StoredDocument(text=text, sha=sha)

    async def write(self, path: str, text: str, sha: str, message: str) -> str:
        self.writes.append({"path": path, "text": text, "sha": sha, "message": message})
        current = self.documents.get(path)
        if current is None or current[1] != sha:
            raise StoreWriteError("Failed to commit to GitHub: 409", status_code=409)
        self.documents[path] = (text, _sha(text))
        self._revision += 1
        return f"c0ffee{self._revision:04d}"


@pytest.fixture
def link_config() -> LinkServiceConfig:
    return LinkServiceConfig(
        owner="octo",
        repo="links",
        branch="main",
        token="ghp_test",
        table_path=RULES_PATH,
        binding_name=BINDING,
        base_domain="s.example.com",
    )


@pytest.fixture
def store() -> InMemoryContentStore:
    return InMemoryContentStore({RULES_PATH: encode({}, BINDING)})


@pytest.fixture
def link_service(link_config: LinkServiceConfig, store: InMemoryContentStore) -> LinkService:
    return LinkService(link_config, store)


@pytest.fixture
def propagate_logs(monkeypatch):
    """Let caplog see records from the `shortlink` logger after setup_logging()."""
    monkeypatch.setattr(logging.getLogger("shortlink"), "propagate", True)
