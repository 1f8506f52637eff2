"""Tests for User-Agent construction."""

from unittest.mock import patch

import pytest

from utils.useragent import detect_ci_provider, get_user_agent


class TestDetectCIProvider:
    """Tests for CI detection."""

    def test_not_ci(self):
        """Test that a plain environment is not CI."""
        assert detect_ci_provider({}) is None

    @pytest.mark.parametrize(
        "environ,expected",
        [
            ({"CI": "true", "CIRCLECI": "true"}, "circleci"),
            ({"CI": "true", "BITBUCKET_BUILD_NUMBER": "12"}, "bitbucket"),
            ({"CI": "true", "TRAVIS": "true"}, "travis-ci"),
            ({"CI": "true", "GITLAB_CI": "true"}, "gitlab-ci"),
            ({"JENKINS_HOME": "/var/jenkins"}, "jenkins"),
            ({"GITHUB_ACTIONS": "true", "GITHUB_ACTION": "audit"}, "github-action audit"),
            ({"CI": "true"}, "ci usage"),
        ],
    )
    def test_providers(self, environ, expected):
        """Test provider names."""
        assert detect_ci_provider(environ) == expected


class TestGetUserAgent:
    """Tests for get_user_agent."""

    @patch("utils.useragent.platform")
    def test_format(self, mock_platform):
        """Test the full header value."""
        mock_platform.system.return_value = "Linux"
        mock_platform.machine.return_value = "x86_64"

        user_agent = get_user_agent(
            "sleuth-client",
            "1.2.3",
            {"CI": "true", "TRAVIS": "true", "SC_CALLER_INFO": "bitbucket-plugin/1.0"},
        )

        assert user_agent == "sleuth-client/1.2.3 (travis-ci; linux x86_64; bitbucket-plugin/1.0)"

    @patch("utils.useragent.platform")
    def test_non_ci(self, mock_platform):
        """Test outside CI without caller info."""
        mock_platform.system.return_value = "Darwin"
        mock_platform.machine.return_value = "arm64"

        assert get_user_agent("sleuth-client", "1.2.3", {}) == "sleuth-client/1.2.3 (non ci usage; darwin arm64; )"

    def test_default_version(self):
        """Test that a version is always present."""
        user_agent = get_user_agent(environ={})
        assert user_agent.startswith("sleuth-client/")
        assert user_agent.split("/")[1].split(" ")[0]
