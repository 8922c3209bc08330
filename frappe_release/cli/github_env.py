import json

import click

from frappe_release.cli.util import CONTEXT_SETTINGS, execute
from frappe_release.latest_tags import REPOSITORIES, VERSIONS, export_tags, get_latest_tags
from frappe_release.util import b64_encode_file, write_github_env


def _latest_tags(repo: str, version: str):
    tags = get_latest_tags(repo, version)
    export_tags(tags)
    click.echo(json.dumps(tags, indent=2))


def _encode_file(path: str, name: str):
    values = {name: b64_encode_file(path)}
    if not write_github_env(values):
        click.echo(f"{name}={values[name]}")


@click.command("latest-tags", context_settings=CONTEXT_SETTINGS)
@click.option("--repo", required=True, type=click.Choice(REPOSITORIES))
@click.option("--version", required=True, type=click.Choice(VERSIONS))
def latest_tags(repo, version):
    """Export the newest frappe (and erpnext) tags to GITHUB_ENV."""
    execute(_latest_tags, repo, version)


@click.command("encode-file", context_settings=CONTEXT_SETTINGS)
@click.argument("path")
@click.option("--name", default="APPS_JSON_BASE64", show_default=True, help="Variable to export.")
def encode_file(path, name):
    """Export the base64 encoded contents of PATH to GITHUB_ENV."""
    execute(_encode_file, path, name)
