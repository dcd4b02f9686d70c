"""GitHub contents API client for the problem collection file.

The blob ``sha`` returned by a read is the version token: a write must
carry the sha it was based on, and GitHub rejects it when the file has
changed since. That rejection is reported as a conflict for the caller
to re-read and retry; nothing here retries.
"""
import base64
import logging
import re
from typing import Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
ERROR_BODY_LIMIT = 500
CONFLICT_STATUSES = (409, 412)
SHA_ERROR = re.compile(r"sha", re.IGNORECASE)
UNEXPECTED_PAYLOAD = "Unexpected contents payload"


class FetchResult(BaseModel):
    status: int
    content: Optional[str] = None
    sha: Optional[str] = None
    error: Optional[str] = None


class WriteResult(BaseModel):
    status: int
    sha: Optional[str] = None
    error: Optional[str] = None
    conflict: bool = False


def to_base64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def from_base64(data: str) -> str:
    # GitHub wraps the encoded content with newlines
    return base64.b64decode(data or "").decode("utf-8")


def _written_sha(response: httpx.Response) -> Optional[str]:
    """Sha of the new blob from a successful write reply, or None if it is unreadable."""
    try:
        payload = response.json()
    except ValueError:
        return None
    content = payload.get("content") if isinstance(payload, dict) else None
    sha = content.get("sha") if isinstance(content, dict) else None
    return sha if isinstance(sha, str) else None


def is_conflict(status: int, error: str | None) -> bool:
    """True when a failed write means the sha no longer matches the file."""
    return status in CONFLICT_STATUSES or bool(error and SHA_ERROR.search(error))


class GitHubContentsClient:
    """Reads and writes one file through ``/repos/{owner}/{repo}/contents/{path}``."""

    def __init__(self, client: httpx.AsyncClient, token: str, base_url: str = GITHUB_API_BASE):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
        }

    def _url(self, owner: str, repo: str, path: str) -> str:
        return f"{self.base_url}/repos/{quote(owner, safe='')}/{quote(repo, safe='')}/contents/{quote(path)}"

    async def get_file(self, owner: str, repo: str, path: str, ref: str) -> FetchResult:
        """Fetch decoded file content and its sha; 404 means the file does not exist yet."""
        try:
            response = await self.client.get(
                self._url(owner, repo, path), params={"ref": ref}, headers=self.headers
            )
            if response.status_code == 404:
                return FetchResult(status=404)
            if not response.is_success:
                logger.warning("GitHub read of %s failed with %s", path, response.status_code)
                return FetchResult(status=response.status_code, error=response.text[:ERROR_BODY_LIMIT])

            payload = response.json()
            if not isinstance(payload, dict) or not isinstance(payload.get("content") or "", str):
                # A directory path lists its entries as an array
                logger.warning("GitHub read of %s returned %s, not a file", path, type(payload).__name__)
                return FetchResult(status=500, error=UNEXPECTED_PAYLOAD)
            sha = payload.get("sha")
            return FetchResult(
                status=200,
                content=from_base64(payload.get("content") or ""),
                sha=sha if isinstance(sha, str) else None,
            )

        except (httpx.HTTPError, ValueError) as e:
            logger.warning("GitHub read of %s failed: %s", path, e)
            return FetchResult(status=500, error=str(e) or e.__class__.__name__)

    async def put_file(
        self,
        owner: str,
        repo: str,
        path: str,
        branch: str,
        message: str,
        content: str,
        sha: Optional[str] = None,
    ) -> WriteResult:
        """Replace the file with ``content``.

        ``sha`` is the version the caller read; leave it out only when
        creating the file for the first time.
        """
        body = {"message": message, "content": to_base64(content), "branch": branch}
        if sha:
            body["sha"] = sha

        try:
            response = await self.client.put(self._url(owner, repo, path), json=body, headers=self.headers)
            if not response.is_success:
                error = response.text[:ERROR_BODY_LIMIT]
                conflict = is_conflict(response.status_code, error)
                if conflict:
                    logger.warning("GitHub write of %s rejected: sha %s is stale", path, sha)
                else:
                    logger.warning("GitHub write of %s failed with %s", path, response.status_code)
                return WriteResult(status=response.status_code, error=error, conflict=conflict)

            new_sha = _written_sha(response)
            if new_sha is None:
                logger.warning("Wrote %s on %s but the reply carried no sha; re-read before the next write", path, branch)
            else:
                logger.info("Wrote %s on %s, new sha %s", path, branch, new_sha)
            return WriteResult(status=response.status_code, sha=new_sha)

        except (httpx.HTTPError, ValueError) as e:
            logger.warning("GitHub write of %s failed: %s", path, e)
            return WriteResult(status=500, error=str(e) or e.__class__.__name__)
