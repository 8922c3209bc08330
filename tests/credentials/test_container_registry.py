import os
from unittest import mock

import pytest

from frappe_release.credentials.container_registry import DockerRegistry as victim, DockerCredentials
from frappe_release.schemas import FRAPPE_RELEASE_BASE_SCHEMA

OS_KEYS = {
    "DOCKER_USERNAME": "dockeruser",
    "DOCKER_PASSWORD": "dockerpass",
    "HUB_USER": "hubuser",
    "HUB_TOKEN": "t0k3n",
}


@mock.patch.dict(os.environ, OS_KEYS)
def test_credentials_defaults():
    res = victim(FRAPPE_RELEASE_BASE_SCHEMA({})).credentials()
    assert res == DockerCredentials("dockeruser", "dockerpass", "docker.io")


@mock.patch.dict(os.environ, OS_KEYS)
def test_credentials_custom_keys():
    config = FRAPPE_RELEASE_BASE_SCHEMA(
        {
            "registry": "ghcr.io",
            "environment_keys": {"container_registry": {"username": "HUB_USER", "password": "HUB_TOKEN"}},
        }
    )
    assert victim(config).credentials() == DockerCredentials("hubuser", "t0k3n", "ghcr.io")


@mock.patch.dict(os.environ, {"DOCKER_USERNAME": "dockeruser"}, clear=True)
def test_credentials_missing_password():
    with pytest.raises(ValueError, match="DOCKER_PASSWORD environment variable is not set"):
        victim(FRAPPE_RELEASE_BASE_SCHEMA({})).credentials()


def test_password_not_in_repr():
    assert "dockerpass" not in repr(DockerCredentials("dockeruser", "dockerpass", "docker.io"))
