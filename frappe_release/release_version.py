import re
from dataclasses import dataclass

VERSION_PATTERN = re.compile(r"^v([0-9]+)\.([0-9]+)\.([0-9]+)(-[a-zA-Z0-9]+)?$")

USER_SPECIFIED = "user-specified"


class InvalidVersionError(ValueError):
    pass


class UnsupportedVersionError(Exception):
    """Raised for well-formed tags of a major version that is not built. Not a failure."""

    def __init__(self, tag: str, supported_major: str):
        self.tag = tag
        self.supported_major = supported_major
        super().__init__(f"Only v{supported_major} releases are allowed (found: {tag})")


def major_version(tag: str) -> str:
    """Returns the major version of a tag like `v15.2.3`

    Raises:
        InvalidVersionError if the tag is not `v{major}.{minor}.{patch}` with an optional `-{suffix}`
    """
    match = VERSION_PATTERN.match(tag)
    if not match:
        raise InvalidVersionError(
            f"Invalid version format: {tag} "
            "(expected v{major}.{minor}.{patch} or v{major}.{minor}.{patch}-{suffix})"
        )
    return match.group(1)


@dataclass(frozen=True)
class ReleaseVersion(object):
    source_version: str
    branch: str
    image_version: str
    released_at: str = USER_SPECIFIED

    @classmethod
    def from_tag(cls, tag: str, supported_major: str, released_at: str = USER_SPECIFIED) -> "ReleaseVersion":
        """Derives the upstream tag, the frappe branch and the image tag from a release tag

        Example:

            `v15.2.3` gives source version `v15.2.3`, branch `version-15` and image version `15.2.3`

        Args:
            tag: The release tag
            supported_major: The only major version that may be built
            released_at: When the release was created, if known

        Raises:
            InvalidVersionError: The tag is malformed
            UnsupportedVersionError: The tag belongs to another major version
        """
        major = major_version(tag)
        if major != str(supported_major):
            raise UnsupportedVersionError(tag, str(supported_major))
        return cls(
            source_version=tag,
            branch=f"version-{major}",
            image_version=tag[1:],
            released_at=released_at,
        )
