from dataclasses import dataclass, field

from frappe_release.credentials.environment_credentials_provider import EnvironmentCredentials


@dataclass(frozen=True)
class DockerCredentials(object):
    username: str
    password: str = field(repr=False)
    registry: str


class DockerRegistry(object):
    def __init__(self, config: dict):
        self.config = config
        self.provider = EnvironmentCredentials(config)

    def credentials(self) -> DockerCredentials:
        credential_kwargs = self.provider.get_credentials("container_registry")
        return DockerCredentials(registry=self.config["registry"], **credential_kwargs)
