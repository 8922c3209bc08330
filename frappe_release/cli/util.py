import logging
from typing import Callable

import click
import git
import voluptuous as vol
import yaml

from frappe_release.release_version import UnsupportedVersionError

logger = logging.getLogger(__name__)

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])

# OSError covers failed commands, missing files and executables and failed HTTP requests.
# GitError covers running outside a git checkout, YAMLError a malformed config file.
EXPECTED_ERRORS = (OSError, LookupError, RuntimeError, ValueError, vol.Invalid, git.GitError, yaml.YAMLError)


def execute(action: Callable, *args, **kwargs):
    """Runs a command, turning failures into a logged error and exit code 1

    A release of an unsupported major version is skipped with exit code 0.
    """
    ctx = click.get_current_context()
    try:
        action(*args, **kwargs)
    except UnsupportedVersionError as e:
        logger.info(f"Skipping build: {e}")
        ctx.exit(0)
    except EXPECTED_ERRORS as e:
        logger.error(str(e) or type(e).__name__)
        logger.debug("Traceback", exc_info=True)
        ctx.exit(1)
