import voluptuous as vol

FRAPPE_RELEASE_COMMON_SCHEMA = vol.Schema(
    {
        vol.Optional("github", default={}): vol.Schema(
            {
                vol.Optional("api_url", default="https://api.github.com"): str,
                vol.Optional(
                    "repository", default="frappe/erpnext", description="Repository whose releases are built"
                ): str,
                vol.Optional("timeout", default=30): vol.All(vol.Coerce(int), vol.Range(min=1)),
                vol.Optional(
                    "token_key",
                    default="GITHUB_TOKEN",
                    description="Environment variable holding an optional API token",
                ): str,
            }
        ),
        vol.Optional("supported_major", default="15", description="The only major version that is built"): vol.All(
            vol.Coerce(str), vol.Match(r"^[0-9]+$")
        ),
        vol.Optional("frappe_path", default="https://github.com/frappe/frappe"): str,
        vol.Optional("registry", default="docker.io"): str,
        vol.Optional("image_repository", default="docker.io/geniusdynamics/erpnext"): str,
    },
    extra=vol.ALLOW_EXTRA,
)

ENVIRONMENT_KEYS_SCHEMA = {
    vol.Optional("environment_keys", default={}): vol.Schema(
        {
            vol.Optional("container_registry", default={}): vol.Schema(
                {
                    vol.Optional("username", default="DOCKER_USERNAME"): str,
                    vol.Optional("password", default="DOCKER_PASSWORD"): str,
                }
            )
        },
        extra=vol.ALLOW_EXTRA,
    )
}

FRAPPE_RELEASE_BASE_SCHEMA = FRAPPE_RELEASE_COMMON_SCHEMA.extend(ENVIRONMENT_KEYS_SCHEMA)

DEPLOYMENT_SCHEMA = vol.Schema(
    {vol.Required("steps"): [vol.Schema({vol.Required("task"): str}, extra=vol.ALLOW_EXTRA)]},
    extra=vol.ALLOW_EXTRA,
)
