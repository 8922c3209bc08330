import logging
import os
import subprocess
from typing import List

import voluptuous as vol

from frappe_release.credentials.container_registry import DockerRegistry
from frappe_release.release_version import ReleaseVersion
from frappe_release.schemas import FRAPPE_RELEASE_BASE_SCHEMA
from frappe_release.step import Step
from frappe_release.util import b64_encode_file, check_dependencies, run_shell_command

logger = logging.getLogger(__name__)

SCHEMA = FRAPPE_RELEASE_BASE_SCHEMA.extend(
    {
        vol.Required("task"): "build_docker_image",
        vol.Optional("apps_file", default="apps.json", description="JSON list of apps to install"): str,
        vol.Optional("containerfile", default="images/layered/Containerfile"): str,
        vol.Optional("build_context", default="."): str,
        vol.Optional(
            "local_image_name", default="erp-next", description="Name of the image before it is tagged for the registry"
        ): str,
        vol.Optional("tag_release_as_latest", default=True, description="Tag a release also as 'latest' image."): bool,
        vol.Optional(
            "build_args", default={}, description="Additional build arguments, e.g. PYTHON_VERSION"
        ): vol.Schema({str: vol.Coerce(str)}),
    },
    extra=vol.ALLOW_EXTRA,
)


class DockerImageBuilder(Step):
    """Builds the ERPNext image for a release and pushes it to the registry.

    Depends on:
    - Registry credentials (username, password) available as environment variables
    - The docker-cli must be available
    - The apps file and the Containerfile must exist
    """

    def __init__(self, release: ReleaseVersion, config: dict):
        super().__init__(release, config)
        self.docker_credentials = DockerRegistry(self.config).credentials()

    def schema(self) -> vol.Schema:
        return SCHEMA

    @property
    def local_tag(self) -> str:
        return f"{self.config['local_image_name']}:{self.release.image_version}"

    @property
    def registry_tags(self) -> List[str]:
        repository = self.config["image_repository"]
        tags = [f"{repository}:{self.release.image_version}"]
        if self.config["tag_release_as_latest"]:
            tags.append(f"{repository}:latest")
        return tags

    def validate_files(self):
        if not os.path.isfile(self.config["apps_file"]):
            raise FileNotFoundError(f"{self.config['apps_file']} file not found in current directory")
        if not os.path.isfile(self.config["containerfile"]):
            raise FileNotFoundError(f"Containerfile not found at {self.config['containerfile']}")

    def build_args(self, apps_json_base64: str) -> dict:
        return {
            "FRAPPE_PATH": self.config["frappe_path"],
            "FRAPPE_BRANCH": self.release.branch,
            "APPS_JSON_BASE64": apps_json_base64,
            **self.config["build_args"],
        }

    def docker_login(self):
        login = [
            "docker",
            "login",
            self.docker_credentials.registry,
            "-u",
            self.docker_credentials.username,
            "--password-stdin",
        ]

        logger.info(f"Logging in to registry {self.docker_credentials.registry}")

        return_code, _ = run_shell_command(login, stdin=self.docker_credentials.password)
        if return_code != 0:
            raise ChildProcessError(f"Failed to login to {self.docker_credentials.registry}")

        logger.info(f"Successfully logged in to {self.docker_credentials.registry}")

    def docker_logout(self):
        logout = ["docker", "logout", self.docker_credentials.registry]
        logger.info(f"Logging out from {self.docker_credentials.registry}")
        try:
            run_shell_command(logout, stderr=subprocess.DEVNULL)
        except OSError as e:
            logger.warning(f"Could not log out: {e}")

    def build_image(self, tag: str, build_args: dict):
        """Build the docker image

        Args:
            tag: The local tag to apply to the built image
            build_args: Passed as `--build-arg KEY=value`
        """
        cmd = ["docker", "build"]
        for key, value in build_args.items():
            cmd += ["--build-arg", f"{key}={value}"]
        cmd += ["-t", tag, "-f", self.config["containerfile"], self.config["build_context"]]

        logger.info(f"Building docker image with Frappe branch: {self.release.branch}")
        # the apps payload is too long to be useful in the log
        logger.debug(" ".join(cmd))

        return_code, _ = run_shell_command(cmd)

        if return_code != 0:
            raise ChildProcessError("Docker build failed")

        logger.info("Docker image built successfully")

    @staticmethod
    def tag_image(source: str, target: str):
        logger.info(f"Tagging image as: {target}")

        return_code, _ = run_shell_command(["docker", "tag", source, target])

        if return_code != 0:
            raise ChildProcessError(f"Failed to tag image as: {target}")

    @staticmethod
    def push_image(tag: str):
        """Push the docker image

        Args:
            tag: The docker tag to upload
        """
        logger.info(f"Pushing image: {tag}")

        return_code, _ = run_shell_command(["docker", "push", tag])

        if return_code != 0:
            raise ChildProcessError(f"Failed to push image: {tag}")

        logger.info(f"Successfully pushed: {tag}")

    @staticmethod
    def remove_images(tags: List[str]):
        """Removes local images, ignoring any failure"""
        logger.info("Cleaning up local images...")
        for tag in tags:
            try:
                return_code, _ = run_shell_command(["docker", "rmi", tag], stderr=subprocess.DEVNULL)
            except OSError as e:
                logger.warning(f"Could not remove image {tag}: {e}")
                continue
            if return_code != 0:
                logger.debug(f"Image {tag} was not removed")

    def deploy(self, apps_json_base64: str):
        self.build_image(self.local_tag, self.build_args(apps_json_base64))

        logger.info("Tagging and pushing Docker images...")
        for tag in self.registry_tags:
            self.tag_image(self.local_tag, tag)
            self.push_image(tag)

    def run(self):
        check_dependencies(["docker"])
        self.validate_files()
        apps_json_base64 = b64_encode_file(self.config["apps_file"])

        self.docker_login()
        try:
            self.deploy(apps_json_base64)
        finally:
            self.remove_images([self.local_tag] + self.registry_tags)
            self.docker_logout()

        logger.info("Successfully built and pushed ERPNext Docker images")
        logger.info(f"Images: {', '.join(self.registry_tags)}")
