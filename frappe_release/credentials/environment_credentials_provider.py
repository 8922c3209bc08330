import logging
import os
from typing import Dict, List, Tuple, Union

from frappe_release.credentials.credential_provider import BaseProvider

logger = logging.getLogger(__name__)


class EnvironmentCredentialsMixin(object):
    def _transform_environment_key_to_credential_kwargs(self, keys: Dict[str, str]) -> Dict[str, str]:
        """Transforms a mapping of name to environment variable to a mapping of name to value

        Example:

            keys::

                { "username": "DOCKER_USERNAME", "password": "DOCKER_PASSWORD" }

            where environment variables `DOCKER_USERNAME=user1` and `DOCKER_PASSWORD=randomuuid`
            will return a dictionary::

                { "username": "user1", "password": "randomuuid" }


        Args:
            keys: A dictionary containing the mapping of name to environment variable

        Returns:
            A mapping of name to environment variable value
        """
        credentials: Dict[str, str] = self._read_os_variables(list(keys.values()))
        return {name: credentials[os_variable] for name, os_variable in keys.items()}

    def _read_os_variables(self, environment_keys: List[str]) -> Dict[str, str]:
        """
        Example:
           environment_keys: `["DOCKER_USERNAME", "DOCKER_PASSWORD"]`

           where both are set returns::

               { "DOCKER_USERNAME": "user1", "DOCKER_PASSWORD": "randomuuid" }


        Args:
            environment_keys: A list containing the environment keys to search for in os.environ

        Returns:
            A dictionary of all values matching the keys, indexed on the key

        Raises:
            ValueError for the first variable that is unset or empty
        """
        values = {}
        for key in environment_keys:
            value = os.environ.get(key)
            if not value:
                raise ValueError(f"{key} environment variable is not set")
            values[key] = value
        return values


class EnvironmentCredentials(BaseProvider, EnvironmentCredentialsMixin):
    """Reads the credentials named in `environment_keys` of the config from the environment"""

    def get_credentials(self, lookup: Union[str, Dict[str, str], Tuple[str, str]]) -> Dict[str, str]:
        if not isinstance(lookup, str):
            raise ValueError("Please provide a string")
        return self._transform_environment_key_to_credential_kwargs(self.config["environment_keys"][lookup])
