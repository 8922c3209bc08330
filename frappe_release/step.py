import abc
import logging
import pprint

import voluptuous as vol

from frappe_release.release_version import ReleaseVersion

logger = logging.getLogger(__name__)


class Step(object):
    """Base class for any release step

    A step receives the resolved `ReleaseVersion` and its own slice of configuration, merged over
    the common configuration. The configuration is validated against `schema()` on construction so
    a step never starts running with a broken config. Register new steps in `steps.py` to make them
    available to `.frappe_release/deployment.yml`.
    """

    def __init__(self, release: ReleaseVersion, config: dict):
        self.release = release
        self.config = self.validate(config)

    @abc.abstractmethod
    def run(self):
        """Performs the step. Failures are raised, never returned"""
        raise NotImplementedError

    def validate(self, config: dict) -> dict:
        """Validates the config against the schema of this step

        Args:
            config: Step configuration

        Returns:
            The validated config, with defaults filled in

        Raises:
            MultipleInvalid
            Invalid
        """
        try:
            return self.schema()(config)
        except (vol.MultipleInvalid, vol.Invalid) as e:
            logger.error(f"Invalid configuration for task {config.get('task')}: {e}")
            logger.debug(pprint.pformat(config))
            raise e

    @abc.abstractmethod
    def schema(self) -> vol.Schema:
        raise NotImplementedError
