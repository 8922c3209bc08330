import logging
from typing import List, Optional

from frappe_release.github import GitHubReleases
from frappe_release.release_version import ReleaseVersion, USER_SPECIFIED
from frappe_release.schemas import DEPLOYMENT_SCHEMA, FRAPPE_RELEASE_BASE_SCHEMA
from frappe_release.util import find_yaml_filename, get_full_yaml_filename, load_yaml

logger = logging.getLogger(__name__)


def load_config() -> dict:
    """Loads `.frappe_release/config.yml` if there is one and fills in the defaults"""
    filename = find_yaml_filename("config")
    config = load_yaml(filename) if filename else {}
    if filename:
        logger.debug(f"Loaded configuration from {filename}")
    return FRAPPE_RELEASE_BASE_SCHEMA(config)


def load_deployment() -> dict:
    return DEPLOYMENT_SCHEMA(load_yaml(get_full_yaml_filename("deployment")))


def resolve_release(config: dict, requested_version: Optional[str] = None) -> ReleaseVersion:
    """Determines the version to release

    Uses the requested version as is, or looks up the most recent release of the supported
    major version.

    Raises:
        InvalidVersionError: The tag is malformed
        UnsupportedVersionError: The tag belongs to another major version
    """
    supported_major = config["supported_major"]

    if requested_version:
        logger.info(f"Using specified version: {requested_version}")
        return ReleaseVersion.from_tag(requested_version, supported_major, USER_SPECIFIED)

    releases = GitHubReleases.from_config(config)
    logger.info(f"Fetching latest release of {releases.repository} from GitHub API...")
    latest = releases.latest(supported_major)
    logger.info(f"Fetched latest version: {latest.tag_name}")
    logger.info(f"Release created at: {latest.created_at}")
    return ReleaseVersion.from_tag(latest.tag_name, supported_major, latest.created_at or USER_SPECIFIED)


def log_release(release: ReleaseVersion):
    logger.info("Version configuration:")
    logger.info(f"  ERPNext version: {release.source_version}")
    logger.info(f"  Frappe branch: {release.branch}")
    logger.info(f"  Image version: {release.image_version}")


def run_task(release: ReleaseVersion, task: str, task_config: dict):
    from frappe_release.steps import steps

    if task not in steps:
        raise ValueError(f"Release step {task} is unknown, please check the config")
    else:
        return steps[task](release, task_config).run()


def main(requested_version: Optional[str] = None, tasks: Optional[List[str]] = None) -> ReleaseVersion:
    """Resolves the release and runs the steps

    Args:
        requested_version: The tag to release, the latest release when omitted
        tasks: The steps to run with their default config. When omitted the steps are read
            from `.frappe_release/deployment.yml`

    Returns:
        The released version
    """
    config = load_config()
    if tasks is None:
        task_configs = load_deployment()["steps"]
    else:
        task_configs = [{"task": task} for task in tasks]

    release = resolve_release(config, requested_version)
    log_release(release)

    for task_config in task_configs:
        task = task_config["task"]
        logger.info("*" * 76)
        logger.info("{:10s} {:13s} {:40s} {:10s}".format("*" * 10, "RUNNING TASK:", task, "*" * 10))
        logger.info("*" * 76)
        run_task(release, task, {**config, **task_config})

    return release
