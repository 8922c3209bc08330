"""Resolves the newest upstream tags of frappe and erpnext for the image build workflow.

The tags are read with `git ls-remote`, sorted by git as versions so that pre-releases
(`v15.0.0-beta.1`) sort before the final release (`v15.0.0`).
"""
import logging
from typing import Dict, Optional

import git

from frappe_release.util import write_github_env

logger = logging.getLogger(__name__)

REPOSITORIES = ("frappe", "erpnext")
VERSIONS = ("12", "13", "14", "15", "develop")
DEVELOP = "develop"


def get_latest_tag(repo: str, version: str, owner: str = "frappe") -> str:
    """Returns the newest tag `v{version}.*` of a GitHub repository

    Raises:
        RuntimeError if the repository has no matching tags
    """
    if version == DEVELOP:
        return DEVELOP

    url = f"https://github.com/{owner}/{repo}"
    pattern = f"v{version}.*"
    logger.debug(f"Listing tags {pattern} of {url}")
    output = git.Git()(c="versionsort.suffix=-").ls_remote("--refs", "--tags", "--sort=v:refname", url, pattern)

    refs = output.split()[1::2]
    if not refs:
        raise RuntimeError(f"No tags found for version {version} in {url}")
    return refs[-1].rsplit("/", 1)[-1]


def get_latest_tags(repo: str, version: str) -> Dict[str, Optional[str]]:
    if repo not in REPOSITORIES:
        raise ValueError(f"Unknown repository {repo}, expected one of {', '.join(REPOSITORIES)}")
    tags = {"frappe": get_latest_tag("frappe", version), "erpnext": None}
    if repo == "erpnext":
        tags["erpnext"] = get_latest_tag("erpnext", version)
    return tags


def export_tags(tags: Dict[str, Optional[str]]) -> bool:
    values = {f"{name.upper()}_VERSION": tag for name, tag in tags.items() if tag}
    return write_github_env(values)
