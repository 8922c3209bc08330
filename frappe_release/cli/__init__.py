import click

from frappe_release.cli import github_env, release
from frappe_release.cli.util import CONTEXT_SETTINGS
from frappe_release.util import configure_logging


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option("-v", "--verbose", is_flag=True, help="Also log debug messages.")
@click.pass_context
def main(ctx: click.Context, verbose: bool):
    """Build, push and pin ERPNext Docker images."""
    configure_logging(ctx.invoked_subcommand or ctx.info_name, verbose)


main.add_command(release.build_and_push)
main.add_command(release.update_versions)
main.add_command(release.run)
main.add_command(github_env.latest_tags)
main.add_command(github_env.encode_file)
