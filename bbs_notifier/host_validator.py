"""
Validation of the configured Bitbucket host and of repository hosts.

A repository is only notified when it lives on the configured server:
either the exact host or a subdomain of it.
"""

from urllib.parse import urlsplit

from bbs_common.errors import ConfigurationError


def validate_bitbucket_host(bitbucket_host: str | None) -> str:
    """
    Check a configured host URL and return it without a trailing slash.

    Raises:
        ConfigurationError: If the host is empty or not a full http(s) URL
    """
    if not bitbucket_host:
        raise ConfigurationError("Bitbucket host is not configured")
    if not bitbucket_host.startswith("http"):
        raise ConfigurationError("Please enter full url of host (with http)")
    return bitbucket_host.rstrip("/")


class HostValidator:
    """Decides whether a repository host belongs to the configured server."""

    def is_valid(self, repo_host: str | None, bitbucket_host: str | None) -> bool:
        if not repo_host or not bitbucket_host:
            return False

        allowed = (urlsplit(bitbucket_host).hostname or bitbucket_host).lower()
        repo_host = repo_host.lower()
        return repo_host == allowed or repo_host.endswith("." + allowed)

    def render_error(self, bitbucket_host: str | None) -> str:
        return (
            "Bitbucket build notifier support only repositories hosted in "
            f"{bitbucket_host}"
        )
