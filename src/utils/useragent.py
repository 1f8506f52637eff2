"""
User-Agent construction for requests to OSS Index and IQ Server.

The agent names the tool and version, whether the run happens in CI (and
which provider), the platform, and any caller chain passed in SC_CALLER_INFO.
"""

import logging
import os
import platform
from importlib.metadata import PackageNotFoundError, version as package_version
from typing import Mapping, Optional

from constants import CLIENT_TOOL

logger = logging.getLogger(__name__)

DISTRIBUTION_NAME = "sleuth-audit"

# Checked in order; the first variable that is set names the provider.
CI_PROVIDERS = [
    ("CIRCLECI", "circleci"),
    ("BITBUCKET_BUILD_NUMBER", "bitbucket"),
    ("TRAVIS", "travis-ci"),
    ("GITLAB_CI", "gitlab-ci"),
    ("JENKINS_HOME", "jenkins"),
]


def get_tool_version() -> str:
    """Installed version of Sleuth, or "development" when running from a checkout."""
    try:
        return package_version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return "development"


def detect_ci_provider(environ: Mapping[str, str]) -> Optional[str]:
    """
    Name the CI system the process runs in.

    Args:
        environ: Environment variables

    Returns:
        Provider name, "ci usage" for an unrecognized CI, or None outside CI
    """
    in_ci = bool(environ.get("CI") or environ.get("JENKINS_HOME") or environ.get("GITHUB_ACTIONS"))
    if not in_ci:
        return None

    for variable, provider in CI_PROVIDERS:
        if environ.get(variable):
            return provider

    if environ.get("GITHUB_ACTIONS"):
        return f"github-action {environ.get('GITHUB_ACTION', '')}".rstrip()

    return "ci usage"


def get_user_agent(
    tool: str = CLIENT_TOOL,
    tool_version: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Build the User-Agent header value.

    Args:
        tool: Client tool name
        tool_version: Client version (defaults to the installed version)
        environ: Environment variables (defaults to os.environ)

    Returns:
        e.g. "sleuth-client/1.0.0 (non ci usage; linux x86_64; )"

    Examples:
        >>> get_user_agent("sleuth-client", "1.0.0", {"CI": "true", "TRAVIS": "true"})  # doctest: +SKIP
        'sleuth-client/1.0.0 (travis-ci; linux x86_64; )'
    """
    environ = os.environ if environ is None else environ
    tool_version = tool_version or get_tool_version()

    usage = detect_ci_provider(environ) or "non ci usage"
    caller_info = environ.get("SC_CALLER_INFO", "")
    system = platform.system().lower()
    machine = platform.machine().lower()

    user_agent = f"{tool}/{tool_version} ({usage}; {system} {machine}; {caller_info})"
    logger.debug(f"User agent: {user_agent}")
    return user_agent
