"""Persistence of the problem collection in a GitHub-hosted JSON file."""
from .github_store import FetchResult, GitHubContentsClient, WriteResult, is_conflict

__all__ = ["FetchResult", "GitHubContentsClient", "WriteResult", "is_conflict"]
