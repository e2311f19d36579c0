"""Tests for field and module prompting."""

import pytest

from nixwizard.lib.errors import InteractionRequiredError
from nixwizard.lib.modules import ConfigSession, Module, ModuleState
from nixwizard.lib.prompting import NonInteractiveConsole, Prompter

from tests.conftest import FAKE_DISKS, ScriptedConsole


def prompter_for(session, answers):
    return Prompter(session, ScriptedConsole(answers))


class TestPromptField:
    """Tests for the generic field prompt."""

    def test_prompt_format(self, make_session):
        prompter = prompter_for(make_session("network"), [""])
        prompter.prompt_field("NETWORK_METHOD")
        assert prompter.console.asked == [
            f"  {'Network Method':<20} [dhcp] (dhcp, static): "
        ]

    def test_empty_input_keeps_valid_current_value(self, make_session):
        session = make_session("network")
        prompter = prompter_for(session, [""])

        assert prompter.prompt_field("NETWORK_METHOD") is False
        assert session.fields.get("NETWORK_METHOD") == "dhcp"
        assert prompter.console.said == []

    def test_required_field_reprompts(self, make_session):
        session = make_session("network")
        prompter = prompter_for(session, ["", "bad_host!", "web01"])

        assert prompter.prompt_field("HOSTNAME") is True
        assert session.fields.get("HOSTNAME") == "web01"
        said = prompter.console.said
        assert said[0] == "    Error: Hostname is required"
        assert said[1].startswith("    Error: ")
        assert said[-1] == "    -> Set: web01"

    def test_update_message(self, make_session):
        session = make_session("network")
        prompter = prompter_for(session, ["static"])
        prompter.prompt_field("NETWORK_METHOD")
        assert prompter.console.said == ["    -> Updated: dhcp -> static"]

    def test_toggle_answer_normalized(self, make_session):
        session = make_session("ssh")
        prompter = prompter_for(session, ["Enabled"])

        prompter.prompt_field("SSH_PASSWORD_AUTH")

        assert session.fields.get("SSH_PASSWORD_AUTH") == "true"
        assert prompter.console.said == ["    -> Updated: false -> true"]

    def test_prompting_moves_module_state(self, make_session):
        session = make_session("network")
        prompter_for(session, ["web01"]).prompt_field("HOSTNAME")
        assert session.state("network") == ModuleState.PROMPTING

    def test_non_interactive_console_refuses(self, make_session):
        prompter = Prompter(make_session("network"), NonInteractiveConsole())
        with pytest.raises(InteractionRequiredError) as exc_info:
            prompter.prompt_field("HOSTNAME")
        assert "Hostname" in exc_info.value.prompt


class TestSecretPrompt:
    @pytest.fixture
    def session(self, input_types):
        class Vault(Module):
            name = "vault"

            def init_fields(self, fields):
                self.declare(fields, "ROOT_PASSWORD", "Root Password", "secret", required=True)

        return ConfigSession(input_types, [Vault()])

    def test_reads_without_echo(self, session):
        prompter = prompter_for(session, ["short", "correct-horse"])

        prompter.prompt_field("ROOT_PASSWORD")

        assert session.fields.get("ROOT_PASSWORD") == "correct-horse"
        assert prompter.console.passwords == [True, True]
        assert "    Error: Must be at least 8 characters" in prompter.console.said
        assert prompter.console.said[-1] == "    -> Set: correct-horse"

    def test_edit_prompt_and_update_show_raw_values(self, session):
        session.fields.set("ROOT_PASSWORD", "old-secret-1")
        prompter = prompter_for(session, ["new-secret-2"])

        assert prompter.prompt_field("ROOT_PASSWORD") is True

        assert prompter.console.asked == [f"  {'Root Password':<20} [old-secret-1]: "]
        assert prompter.console.said == ["    -> Updated: old-secret-1 -> new-secret-2"]

    def test_menu_still_masks(self, session):
        session.fields.set("ROOT_PASSWORD", "old-secret-1")
        assert session.fields.display("ROOT_PASSWORD") == "o**********1"


class TestTimezonePrompt:
    """Tests for fragment matching in the timezone prompt."""

    def test_unique_fragment_auto_matches(self, make_session):
        session = make_session("region")
        prompter = prompter_for(session, ["zurich"])

        prompter.prompt_field("TIMEZONE")

        assert session.fields.get("TIMEZONE") == "Europe/Zurich"
        assert prompter.console.said == [
            "    Auto-matched: Europe/Zurich",
            "    -> Updated: UTC -> Europe/Zurich",
        ]

    def test_exact_name_ignores_case(self, make_session):
        session = make_session("region")
        prompter_for(session, ["asia/tokyo"]).prompt_field("TIMEZONE")
        assert session.fields.get("TIMEZONE") == "Asia/Tokyo"

    def test_ambiguous_fragment_lists_matches(self, make_session):
        session = make_session("region")
        prompter = prompter_for(session, ["north_dakota", "America/North_Dakota/Center"])

        prompter.prompt_field("TIMEZONE")

        said = prompter.console.said
        assert "    Multiple matches found:" in said
        assert "      - America/North_Dakota/Center" in said
        assert "      - America/North_Dakota/New_Salem" in said
        assert "    Please be more specific" in said
        assert session.fields.get("TIMEZONE") == "America/North_Dakota/Center"

    def test_unknown_fragment(self, make_session):
        session = make_session("region")
        prompter = prompter_for(session, ["atlantis", ""])

        assert prompter.prompt_field("TIMEZONE") is False
        assert "    Error: No timezone matching 'atlantis' found" in prompter.console.said


class TestDiskPrompt:
    def test_select_by_number(self, make_session):
        session = make_session("disk")
        prompter = prompter_for(session, ["2"])

        prompter.prompt_field("DISK_TARGET")

        assert session.fields.get("DISK_TARGET") == FAKE_DISKS[1].path
        assert "Available disks:" in prompter.console.said
        assert f"  1) {FAKE_DISKS[0].label}" in prompter.console.said

    def test_rejects_unknown_device(self, make_session):
        session = make_session("disk")
        prompter = prompter_for(session, ["/dev/sdz", "1"])

        prompter.prompt_field("DISK_TARGET")

        assert "    Error: '/dev/sdz' is not a valid block device" in prompter.console.said
        assert session.fields.get("DISK_TARGET") == "/dev/sda"


class TestPromptModule:
    """Tests for module level prompting."""

    def test_prompt_all_follows_newly_active_fields(self, make_session):
        session = make_session("network")
        answers = ["web01", "static", "192.168.1.10", "", "192.168.1.1", "", ""]
        prompter = prompter_for(session, answers)

        prompter.prompt_all("network")

        assert len(prompter.console.asked) == 7
        assert prompter.console.said[:2] == ["", "Network Configuration:"]
        assert session.is_valid("network")
        assert session.fields.get("NETWORK_GATEWAY") == "192.168.1.1"

    def test_prompt_missing_asks_only_failing_fields(self, make_session):
        session = make_session("network")
        prompter = prompter_for(session, ["web01"])

        prompter.prompt_missing("network")

        assert len(prompter.console.asked) == 1
        assert "Hostname" in prompter.console.asked[0]

    def test_prompt_missing_silent_when_valid(self, make_session):
        session = make_session("system")
        prompter = prompter_for(session, [])
        prompter.prompt_missing("system")
        assert prompter.console.said == []

    def test_show_module_uses_display_format(self, make_session):
        session = make_session("ssh")
        prompter = prompter_for(session, [])

        prompter.show_module("ssh")

        assert prompter.console.said[0] == "SSH:"
        assert "   > Enable SSH Server: ✓ enabled" in prompter.console.said
        assert "   > Allow Password Authentication: ✗ disabled" in prompter.console.said
        assert session.fields.get("SSH_ENABLE") == "true"
