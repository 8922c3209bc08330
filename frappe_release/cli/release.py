import click

from frappe_release import release as runner
from frappe_release.cli.util import CONTEXT_SETTINGS, execute

VERSION_HELP = """
VERSION is optional, e.g. v15.0.0 or v15.1.2. Without it the latest
release of the supported major version is fetched from the GitHub API.
Only v15.x.x versions are supported by default.
"""


@click.command("build-and-push", context_settings=CONTEXT_SETTINGS, epilog=VERSION_HELP)
@click.argument("version", required=False)
def build_and_push(version):
    """Build and push ERPNext Docker images.

    Registry credentials are read from DOCKER_USERNAME and DOCKER_PASSWORD.

    \b
    Examples:
      frappe-release build-and-push           # Build latest release
      frappe-release build-and-push v15.0.0   # Build specific version v15.0.0
    """
    execute(runner.main, version, ["build_docker_image"])


@click.command("update-versions", context_settings=CONTEXT_SETTINGS, epilog=VERSION_HELP)
@click.argument("version", required=False)
def update_versions(version):
    """Pin the release in example.env and pwd.yml and commit the change."""
    execute(runner.main, version, ["update_versions"])


@click.command("run", context_settings=CONTEXT_SETTINGS, epilog=VERSION_HELP)
@click.argument("version", required=False)
def run(version):
    """Run the steps listed in .frappe_release/deployment.yml."""
    execute(runner.main, version)
