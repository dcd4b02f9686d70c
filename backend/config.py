"""Environment configuration for the problem bank backend."""
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()  # loads .env

DEFAULT_REPO = "damp83/bancoproblemas"
DEFAULT_PATH = "data/problems.json"
DEFAULT_BRANCH = "main"


class Settings(BaseModel):
    """Credentials and GitHub file location, read fresh for every request."""
    gemini_api_key: Optional[str] = None
    github_token: Optional[str] = None
    github_repo: str = DEFAULT_REPO  # "owner/repo"
    github_path: str = DEFAULT_PATH
    github_branch: str = DEFAULT_BRANCH

    @property
    def owner(self) -> str:
        return self.github_repo.partition("/")[0]

    @property
    def repo(self) -> str:
        return self.github_repo.partition("/")[2]


def get_settings() -> Settings:
    """Build settings from the environment; empty variables count as unset."""
    return Settings(
        gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
        github_token=os.getenv("GITHUB_TOKEN") or None,
        github_repo=os.getenv("GITHUB_REPO") or DEFAULT_REPO,
        github_path=os.getenv("GITHUB_PATH") or DEFAULT_PATH,
        github_branch=os.getenv("GITHUB_BRANCH") or DEFAULT_BRANCH,
    )
