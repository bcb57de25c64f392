"""Tests for models.py module."""

import pytest

from elchi_installer.exceptions import ArgumentValidationError
from elchi_installer.models import (
    CommandResult,
    InstallParams,
    ToolStatus,
    validate_address,
    validate_port,
)


class TestValidatePort:
    """Tests for port argument validation."""

    @pytest.mark.parametrize(("value", "expected"), [("1", 1), ("80", 80), ("8080", 8080), ("65535", 65535)])
    def test_accepts_ports_in_range(self, value, expected):
        """Test digit-only ports between 1 and 65535 are accepted."""
        assert validate_port(value) == expected

    @pytest.mark.parametrize("value", ["0", "65536", "99999", "8o80", "", "-1", "+80", " 80", "80 ", "8080.0", "٨٠"])
    def test_rejects_invalid_ports(self, value):
        """Test out-of-range and non-digit ports are rejected."""
        with pytest.raises(ArgumentValidationError) as exc_info:
            validate_port(value)
        assert "Invalid port number" in str(exc_info.value)
        assert "1-65535" in str(exc_info.value)

    def test_leading_zeros_are_digits(self):
        """Test a zero-padded port is still a valid number."""
        assert validate_port("0080") == 80

    def test_very_long_digit_strings(self):
        """Test digit strings beyond int conversion limits are still judged by value."""
        assert validate_port("0" * 5000 + "80") == 80

        with pytest.raises(ArgumentValidationError):
            validate_port("9" * 5000)
        with pytest.raises(ArgumentValidationError):
            validate_port("0" * 5000)

    def test_validation_error_exit_code(self):
        """Test argument errors map to the usage exit code."""
        with pytest.raises(ArgumentValidationError) as exc_info:
            validate_port("0")
        assert exc_info.value.exit_code == 2


class TestValidateAddress:
    """Tests for address argument validation."""

    def test_accepts_domain_and_ip(self):
        """Test any non-empty address is returned verbatim."""
        assert validate_address("elchi.example.com") == "elchi.example.com"
        assert validate_address("192.168.1.100") == "192.168.1.100"

    @pytest.mark.parametrize("value", ["", "   "])
    def test_rejects_empty_address(self, value):
        """Test blank addresses are rejected."""
        with pytest.raises(ArgumentValidationError):
            validate_address(value)


class TestRecords:
    """Tests for the small record types."""

    def test_access_url(self):
        """Test the access URL combines address and port."""
        params = InstallParams(address="elchi.example.com", port=8080)
        assert params.access_url == "http://elchi.example.com:8080"

    def test_install_params_are_frozen(self):
        """Test InstallParams cannot be mutated."""
        params = InstallParams(address="a", port=1)
        with pytest.raises(AttributeError):
            params.port = 2  # type: ignore[misc]

    def test_command_result_ok(self):
        """Test ok reflects a zero exit status."""
        assert CommandResult(["true"], 0, "", "").ok
        assert not CommandResult(["false"], 1, "", "").ok

    def test_tool_status_present(self):
        """Test present reflects whether a path was found."""
        assert ToolStatus("kind", "/usr/local/bin/kind", "kind v0.20.0").present
        assert not ToolStatus("kind", None, "").present
