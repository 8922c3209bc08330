from frappe_release.build_docker_image import DockerImageBuilder
from frappe_release.update_versions import UpdateVersions

steps = {
    "build_docker_image": DockerImageBuilder,
    "update_versions": UpdateVersions,
}
