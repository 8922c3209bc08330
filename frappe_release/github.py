import logging
import os
import re
from dataclasses import dataclass
from typing import List, Optional

import requests

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_HEADERS = {"Accept": "application/vnd.github+json", "X-GitHub-Api-Version": "2022-11-28"}

FULL_VERSION_PATTERN = re.compile(r"^v?[0-9]+\.[0-9]+\.[0-9]+(-[a-zA-Z0-9]+)?$")


class ReleaseNotFoundError(LookupError):
    pass


@dataclass(frozen=True)
class Release(object):
    tag_name: str
    created_at: Optional[str]

    @classmethod
    def from_record(cls, record: dict) -> "Release":
        tag_name = record.get("tag_name") if isinstance(record, dict) else None
        if not tag_name or not isinstance(tag_name, str):
            raise ValueError(f"Invalid tag name received: {tag_name}")
        return cls(tag_name, record.get("created_at"))


def tag_matches(tag: str, version_filter: Optional[str]) -> bool:
    """Checks a release tag against a version filter

    A full version (`v15.2.3` or `15.2.3`) must match exactly, anything shorter (`15`, `v15.2`)
    matches every tag that starts with it followed by a dot.

    Args:
        tag: The release tag, e.g. `v15.2.3`
        version_filter: The filter, None matches everything

    Returns:
        True if the tag matches
    """
    if not version_filter:
        return True
    wanted = version_filter if version_filter.startswith("v") else f"v{version_filter}"
    if FULL_VERSION_PATTERN.match(version_filter):
        return tag == wanted
    return tag.startswith(f"{wanted}.")


def select_release(records: List[dict], version_filter: Optional[str] = None) -> Release:
    """Selects the first (most recent) release, or the first one matching the filter

    Raises:
        ReleaseNotFoundError if there are no releases, or none matches
        ValueError if the selected release has no usable tag
    """
    if not records:
        raise ReleaseNotFoundError("No releases found")

    for record in records:
        if not isinstance(record, dict):
            continue
        if tag_matches(str(record.get("tag_name") or ""), version_filter):
            return Release.from_record(record)

    if version_filter and version_filter.lstrip("v").isdigit():
        raise ReleaseNotFoundError(f"No v{version_filter.lstrip('v')} releases found")
    raise ReleaseNotFoundError(f"No release found matching {version_filter}")


class GitHubReleases(object):
    """Lists the releases of a GitHub repository. Only the first page is read."""

    def __init__(self, repository: str, api_url: str = GITHUB_API_URL, timeout: int = 30, token_key: str = None):
        self.repository = repository
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.token_key = token_key

    @classmethod
    def from_config(cls, config: dict) -> "GitHubReleases":
        github = config["github"]
        return cls(github["repository"], github["api_url"], github["timeout"], github["token_key"])

    @property
    def url(self) -> str:
        return f"{self.api_url}/repos/{self.repository}/releases"

    def _headers(self) -> dict:
        headers = dict(GITHUB_API_HEADERS)
        token = os.getenv(self.token_key) if self.token_key else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def list_releases(self) -> List[dict]:
        """Fetches the release records, most recent first

        Raises:
            ConnectionError if the request failed
            ValueError if the response is not a JSON list
        """
        logger.debug(f"Fetching releases from {self.url}")
        try:
            response = requests.get(self.url, headers=self._headers(), timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.debug(e)
            raise ConnectionError("Failed to fetch releases from GitHub API") from e

        try:
            records = response.json()
        except ValueError as e:
            raise ValueError("Invalid JSON response from GitHub API") from e

        if not isinstance(records, list):
            raise ValueError("Invalid JSON response from GitHub API")
        return records

    def latest(self, version_filter: Optional[str] = None) -> Release:
        return select_release(self.list_releases(), version_filter)
