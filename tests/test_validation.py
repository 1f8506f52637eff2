"""Tests for input validation utilities."""

import pytest
from pathlib import Path

from core.exceptions import ValidationException
from utils.validation import (
    mask_username,
    validate_application_id,
    validate_file_path,
    validate_positive_number,
    validate_server_url,
)


class TestValidateServerUrl:
    """Tests for server URL validation."""

    def test_strips_trailing_slash(self):
        """Test normalization of a valid URL."""
        assert validate_server_url("http://localhost:8070/") == "http://localhost:8070"

    def test_https_with_path(self):
        """Test that a context path is kept."""
        assert validate_server_url(" https://iq.example.com/iq ") == "https://iq.example.com/iq"

    def test_empty(self):
        """Test empty URL."""
        with pytest.raises(ValidationException) as exc:
            validate_server_url("  ")
        assert "cannot be empty" in str(exc.value)

    @pytest.mark.parametrize("url", ["localhost:8070", "ftp://iq.example.com", "http://"])
    def test_invalid(self, url):
        """Test URLs without http(s) scheme or host."""
        with pytest.raises(ValidationException) as exc:
            validate_server_url(url, "server")
        assert exc.value.field == "server"


class TestValidateApplicationId:
    """Tests for application id validation."""

    def test_valid(self):
        """Test a typical public id."""
        assert validate_application_id(" my-app_1.0 ") == "my-app_1.0"

    def test_empty(self):
        """Test empty id."""
        with pytest.raises(ValidationException) as exc:
            validate_application_id("")
        assert "cannot be empty" in str(exc.value)

    @pytest.mark.parametrize("application", ["my app", "app&x=1", "app/../x"])
    def test_invalid_characters(self, application):
        """Test ids that do not belong in a query string."""
        with pytest.raises(ValidationException) as exc:
            validate_application_id(application)
        assert "invalid characters" in str(exc.value)


class TestValidateFilePath:
    """Tests for file path validation."""

    def test_existing_file(self, tmp_path):
        """Test an existing file."""
        path = tmp_path / "go-list.json"
        path.write_text("{}")
        assert validate_file_path(path) == path

    def test_missing_file(self, tmp_path):
        """Test a missing file."""
        with pytest.raises(ValidationException) as exc:
            validate_file_path(tmp_path / "missing.json")
        assert "File not found" in str(exc.value)

    def test_missing_file_allowed(self, tmp_path):
        """Test that must_exist=False accepts missing files."""
        path = tmp_path / "new.json"
        assert validate_file_path(path, must_exist=False) == path


class TestValidatePositiveNumber:
    """Tests for numeric range validation."""

    def test_in_range(self):
        """Test a value within range."""
        assert validate_positive_number(5, "max_retries", min_value=0, max_value=10) == 5

    def test_below_minimum(self):
        """Test a value below the minimum."""
        with pytest.raises(ValidationException) as exc:
            validate_positive_number(-1, "max_retries", min_value=0)
        assert "max_retries" in str(exc.value)

    def test_above_maximum(self):
        """Test a value above the maximum."""
        with pytest.raises(ValidationException):
            validate_positive_number(61, "poll_interval", max_value=60)


class TestMaskUsername:
    """Tests for username masking."""

    def test_masks_middle(self):
        """Test that only the first and last characters remain."""
        assert mask_username("someone@example.com") == "s***hidden***m"

    def test_short_and_empty(self):
        """Test short and missing usernames."""
        assert mask_username("ab") == "***hidden***"
        assert mask_username(None) == ""
