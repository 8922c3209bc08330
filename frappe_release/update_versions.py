import logging
import os
import re
from typing import List

import voluptuous as vol
from git import Actor, PushInfo, Repo

from frappe_release.release_version import ReleaseVersion
from frappe_release.schemas import FRAPPE_RELEASE_BASE_SCHEMA
from frappe_release.step import Step

logger = logging.getLogger(__name__)

SCHEMA = FRAPPE_RELEASE_BASE_SCHEMA.extend(
    {
        vol.Required("task"): "update_versions",
        vol.Optional("env_file", default="example.env"): str,
        vol.Optional("env_key", default="ERPNEXT_VERSION"): str,
        vol.Optional("compose_file", default="pwd.yml"): str,
        vol.Optional("compose_image", default="frappe/erpnext", description="Image whose tag is rewritten"): str,
        vol.Optional("compose_tag", default="source_version"): vol.In(["source_version", "image_version"]),
        vol.Optional("commit", default={}): vol.Schema(
            {
                vol.Optional("user_name", default="github-actions"): str,
                vol.Optional("user_email", default="github-actions@github.com"): str,
                vol.Optional("message", default="chore: Update example.env"): str,
                vol.Optional("remote", default="origin"): str,
                vol.Optional("branch", default="main"): str,
                vol.Optional("push", default=True): bool,
            }
        ),
    },
    extra=vol.ALLOW_EXTRA,
)


def _rewrite(path: str, content: str) -> bool:
    with open(path, "r") as f:
        current = f.read()
    if current == content:
        return False
    with open(path, "w") as f:
        f.write(content)
    return True


def update_env_file(path: str, key: str, value: str) -> bool:
    """Sets `key=value` in a dotenv file, appending it when the key is missing

    Returns:
        True if the file changed
    """
    with open(path, "r") as f:
        content = f.read()

    pattern = re.compile(rf"^{re.escape(key)}=.*$", re.MULTILINE)
    line = f"{key}={value}"
    if pattern.search(content):
        content = pattern.sub(lambda _: line, content)
    else:
        if content and not content.endswith("\n"):
            content += "\n"
        content += f"{line}\n"
    return _rewrite(path, content)


def update_compose_file(path: str, image: str, tag: str) -> bool:
    """Points every reference to `image` in a compose file at `tag`

    Returns:
        True if the file changed
    """
    with open(path, "r") as f:
        content = f.read()

    pattern = re.compile(rf"(?<![\w./-]){re.escape(image)}:[^\s\"']+")
    content, count = pattern.subn(lambda _: f"{image}:{tag}", content)
    if not count:
        logger.warning(f"No reference to {image} found in {path}")
    return _rewrite(path, content)


class UpdateVersions(Step):
    """Regenerates the version pins in the example environment and compose files and commits them.

    Depends on:
    - Running inside a git checkout with a remote to push to
    """

    def schema(self) -> vol.Schema:
        return SCHEMA

    @property
    def compose_tag(self) -> str:
        return getattr(self.release, self.config["compose_tag"])

    @property
    def files(self) -> List[str]:
        return [self.config["env_file"], self.config["compose_file"]]

    def update_files(self):
        for path in self.files:
            if not os.path.isfile(path):
                raise FileNotFoundError(f"{path} file not found in current directory")

        if update_env_file(self.config["env_file"], self.config["env_key"], self.release.source_version):
            logger.info(f"Set {self.config['env_key']}={self.release.source_version} in {self.config['env_file']}")
        if update_compose_file(self.config["compose_file"], self.config["compose_image"], self.compose_tag):
            logger.info(f"Set {self.config['compose_image']}:{self.compose_tag} in {self.config['compose_file']}")

    def commit_changes(self, repo: Repo) -> bool:
        """Commits and pushes the regenerated files if they differ from HEAD

        Returns:
            True if a commit was made
        """
        paths = [os.path.relpath(os.path.abspath(path), repo.working_tree_dir) for path in self.files]
        repo.index.add(paths)

        if not repo.git.status("--porcelain", "--", *paths):
            logger.info("versions did not change, exiting.")
            return False

        logger.info("version changed, pushing changes...")
        commit_config = self.config["commit"]
        actor = Actor(commit_config["user_name"], commit_config["user_email"])
        repo.index.commit(commit_config["message"], author=actor, committer=actor)

        if commit_config["push"]:
            remote = repo.remote(commit_config["remote"])
            remote.pull(commit_config["branch"], rebase=True)
            for info in remote.push(f"HEAD:{commit_config['branch']}"):
                if info.flags & (PushInfo.ERROR | PushInfo.REJECTED | PushInfo.REMOTE_REJECTED):
                    raise ChildProcessError(f"Failed to push to {commit_config['remote']}: {info.summary.strip()}")
        return True

    def run(self):
        repo = Repo(os.getcwd(), search_parent_directories=True)
        self.update_files()
        self.commit_changes(repo)
