"""Tests for the field registry."""

import pytest

from nixwizard.lib.errors import ConfigurationError
from nixwizard.lib.fields import FieldRegistry, IssueKind, ValidationIssue, ValidationSeverity


@pytest.fixture
def fields(input_types):
    registry = FieldRegistry(input_types)
    registry.declare("HOSTNAME", "Hostname", "hostname", module="network", required=True)
    registry.declare(
        "NETWORK_METHOD",
        "Network Method",
        "choice",
        module="network",
        default="dhcp",
        options={"options": "dhcp|static"},
    )
    registry.declare(
        "NETWORK_IP", "IP Address", "ip", module="network", visible_all="NETWORK_METHOD==static"
    )
    registry.declare("SSH_PORT", "SSH Port", "port", module="ssh", default="22")
    return registry


class TestDeclare:
    """Tests for field declaration."""

    def test_default_becomes_value(self, fields):
        assert fields.get("NETWORK_METHOD") == "dhcp"
        assert fields.default("NETWORK_METHOD") == "dhcp"

    def test_duplicate_name_raises(self, fields):
        with pytest.raises(ConfigurationError, match="already declared by module 'network'"):
            fields.declare("HOSTNAME", "Hostname again", "hostname", module="system")

    def test_unknown_input_type_raises(self, fields):
        with pytest.raises(ConfigurationError, match="Unknown input type"):
            fields.declare("X", "X", "ipv6")

    def test_choice_without_options_raises(self, fields):
        with pytest.raises(ConfigurationError, match="declares no options"):
            fields.declare("MODE", "Mode", "choice")

    def test_malformed_visibility_raises(self, fields):
        with pytest.raises(ConfigurationError, match="Invalid visibility expression"):
            fields.declare("Y", "Y", "string", visible_all="method=static")

    def test_listing_keeps_declaration_order(self, fields):
        assert fields.names() == ["HOSTNAME", "NETWORK_METHOD", "NETWORK_IP", "SSH_PORT"]
        assert fields.names("ssh") == ["SSH_PORT"]

    def test_options_are_strings(self, fields):
        fields.declare("T", "Timeout", "int", options={"min": 0, "max": 30})
        assert dict(fields.options_for("T")) == {"min": "0", "max": "30"}

    def test_unknown_field_lookup(self, fields):
        assert fields.get("NOPE") == ""
        with pytest.raises(ConfigurationError, match="Unknown field"):
            fields.spec("NOPE")


class TestValues:
    """Tests for storing values and defaults."""

    def test_set_does_not_validate(self, fields):
        fields.set("NETWORK_IP", "not-an-ip")
        assert fields.get("NETWORK_IP") == "not-an-ip"

    def test_set_marks_explicit(self, fields):
        assert not fields.is_explicit("SSH_PORT")
        fields.set("SSH_PORT", "22")
        assert fields.is_explicit("SSH_PORT")
        assert fields.is_default("SSH_PORT")

    def test_listeners_called_after_set(self, fields):
        seen = []
        fields.on_change(lambda name, value: seen.append((name, value, fields.get(name))))
        fields.set("HOSTNAME", "web01")
        assert seen == [("HOSTNAME", "web01", "web01")]

    def test_set_default_moves_untouched_value(self, fields):
        fields.set_default("SSH_PORT", "2222")
        assert fields.get("SSH_PORT") == "2222"
        assert fields.is_default("SSH_PORT")

    def test_set_default_keeps_explicit_value(self, fields):
        fields.set("SSH_PORT", "2200")
        fields.set_default("SSH_PORT", "2222")
        assert fields.get("SSH_PORT") == "2200"
        assert fields.default("SSH_PORT") == "2222"

    def test_reset(self, fields):
        fields.set("SSH_PORT", "2200")
        fields.reset("SSH_PORT")
        assert fields.get("SSH_PORT") == "22"
        assert not fields.is_explicit("SSH_PORT")

    def test_values_view_is_read_only(self, fields):
        view = fields.values()
        with pytest.raises(TypeError):
            view["HOSTNAME"] = "x"
        fields.set("HOSTNAME", "web01")
        assert view["HOSTNAME"] == "web01"


class TestValidation:
    """Tests for per-field validation."""

    def test_required_empty(self, fields):
        issue = fields.validate("HOSTNAME")
        assert issue.kind == IssueKind.MISSING_REQUIRED
        assert issue.message == "Hostname is required"
        assert issue.fields == ("HOSTNAME",)

    def test_optional_empty_is_valid(self, fields):
        assert fields.validate("NETWORK_IP") is None

    def test_type_failure_carries_code_and_hint(self, fields):
        issue = fields.check("NETWORK_IP", "192.168.01.1")
        assert issue.kind == IssueKind.VALIDATION_FAILURE
        assert issue.code == 2
        assert issue.message == "Invalid IP address format (example: 192.168.1.1)"
        assert issue.suggestion == "Expected (e.g. 192.168.1.10)"

    def test_custom_error_overrides_type_message(self, fields):
        fields.declare("PIN", "PIN", "int", error="PIN must be numeric")
        assert fields.check("PIN", "abc").message == "PIN must be numeric"

    def test_check_does_not_store(self, fields):
        fields.check("HOSTNAME", "web01")
        assert fields.get("HOSTNAME") == ""

    def test_apply_normalizes_valid_values(self, fields):
        fields.declare("FLAG", "Flag", "toggle", default="false")
        assert fields.apply("FLAG", "enabled") is None
        assert fields.get("FLAG") == "true"

    def test_apply_leaves_value_on_failure(self, fields):
        issue = fields.apply("SSH_PORT", "abc")
        assert issue is not None
        assert fields.get("SSH_PORT") == "22"
        assert not fields.is_explicit("SSH_PORT")

    def test_visibility(self, fields):
        assert not fields.is_visible("NETWORK_IP")
        fields.set("NETWORK_METHOD", "static")
        assert fields.is_visible("NETWORK_IP")

    def test_display_masks_secrets(self, fields):
        fields.declare("PASSWORD", "Password", "secret", default="password")
        assert fields.display("PASSWORD") == "*******d"
        assert fields.get("PASSWORD") == "password"


class TestValidationIssue:
    def test_cross_field_issue(self):
        issue = ValidationIssue.cross_field("Gateway clash", "NETWORK_GATEWAY", "NETWORK_IP")
        assert issue.kind == IssueKind.CROSS_FIELD
        assert issue.field == "NETWORK_GATEWAY"
        assert issue.is_error

    def test_str_and_dict(self):
        issue = ValidationIssue.cross_field(
            "Password auth is on",
            "SSH_PASSWORD_AUTH",
            severity=ValidationSeverity.WARNING,
            suggestion="Disable it",
        )
        assert str(issue) == "[WARNING] SSH_PASSWORD_AUTH: Password auth is on\n  Fix: Disable it"
        assert issue.to_dict()["severity"] == "warning"
        assert not issue.is_error
