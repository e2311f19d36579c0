"""Tests for the NixOS snippets rendered by each module."""

import pytest

from nixwizard.modules import (
    BootModule,
    DiskModule,
    NetworkModule,
    PackagesModule,
    RegionModule,
    SecurityModule,
    SSHModule,
    SystemModule,
)
from nixwizard.modules.disk import partition_path
from nixwizard.modules.security import invalid_ports
from nixwizard.modules.ssh import split_keys


class TestBoot:
    def test_systemd_boot(self):
        text = BootModule().generate(
            {"UEFI_MODE": "true", "BOOTLOADER": "systemd-boot", "BOOT_TIMEOUT": "3"}
        )
        assert text == (
            "boot.loader = {\n"
            "  systemd-boot.enable = true;\n"
            "  efi.canTouchEfiVariables = true;\n"
            "  timeout = 3;\n"
            "};"
        )

    def test_grub_bios_uses_target_disk(self):
        text = BootModule().generate(
            {"UEFI_MODE": "false", "BOOTLOADER": "grub", "DISK_TARGET": "/dev/vda"}
        )
        assert '    device = "/dev/vda";' in text
        assert "efiSupport" not in text
        assert "canTouchEfiVariables" not in text

    def test_grub_uefi(self):
        text = BootModule().generate({"UEFI_MODE": "true", "BOOTLOADER": "grub"})
        assert '    device = "nodev";' in text
        assert "    efiSupport = true;" in text

    def test_lanzaboote_replaces_systemd_boot(self):
        text = BootModule().generate(
            {
                "UEFI_MODE": "true",
                "BOOTLOADER": "systemd-boot",
                "SECURE_BOOT": "true",
                "SECURE_BOOT_METHOD": "lanzaboote",
            }
        )
        assert "  systemd-boot.enable = false;" in text
        assert "boot.lanzaboote = {" in text

    def test_quiet_boot(self):
        text = BootModule().generate({"BOOTLOADER": "refind", "BOOT_ANIMATION": "quiet"})
        assert "  refind.enable = true;" in text
        assert 'boot.kernelParams = [ "quiet" "splash" ];' in text


class TestBootValidation:
    def test_uefi_only_loader_in_bios_mode(self, make_session):
        session = make_session("boot")
        session.fields.set("UEFI_MODE", "false")

        messages = [issue.message for issue in session.validate_module("boot")]

        assert messages == ["systemd-boot requires UEFI mode"]

    def test_secure_boot_warns(self, make_session):
        session = make_session("boot")
        session.fields.set("SECURE_BOOT", "true")

        issues = session.validate_module("boot")

        assert [i.is_error for i in issues] == [False]
        assert issues[0].suggestion == "You will need to enroll keys in UEFI firmware"

    def test_lanzaboote_requires_systemd_boot(self, make_session):
        session = make_session("boot")
        session.fields.set("SECURE_BOOT", "true")
        session.fields.set("BOOTLOADER", "grub")
        errors = [i.message for i in session.validate_module("boot") if i.is_error]
        assert errors == ["lanzaboote requires systemd-boot"]


class TestNetwork:
    def test_dhcp(self):
        text = NetworkModule().generate(
            {
                "HOSTNAME": "web01",
                "NETWORK_METHOD": "dhcp",
                "NETWORK_DNS_PRIMARY": "1.1.1.1",
                "NETWORK_DNS_SECONDARY": "1.0.0.1",
            }
        )
        assert text == (
            'networking.hostName = "web01";\n'
            "networking.networkmanager.enable = true;\n"
            'networking.nameservers = [ "1.1.1.1" "1.0.0.1" ];'
        )

    def test_static(self):
        text = NetworkModule().generate(
            {
                "HOSTNAME": "web01",
                "NETWORK_METHOD": "static",
                "NETWORK_IP": "192.168.1.10",
                "NETWORK_MASK": "255.255.255.0",
                "NETWORK_GATEWAY": "192.168.1.254",
                "NETWORK_DNS_PRIMARY": "9.9.9.9",
            }
        )
        assert '  address = "192.168.1.10";' in text
        assert "  prefixLength = 24;" in text
        assert 'networking.defaultGateway = "192.168.1.254";' in text
        assert text.endswith('networking.nameservers = [ "9.9.9.9" ];')
        assert "networkmanager" not in text


class TestDisk:
    def test_unencrypted_renders_nothing(self):
        assert DiskModule().generate({"ENCRYPTION": "false"}) is None

    def test_luks_device(self):
        text = DiskModule().generate({"ENCRYPTION": "true", "DISK_TARGET": "/dev/nvme0n1"})
        assert '  device = "/dev/nvme0n1p2";' in text
        assert 'boot.initrd.luks.devices."cryptroot" = {' in text

    @pytest.mark.parametrize(
        "disk,expected",
        [("/dev/sda", "/dev/sda2"), ("/dev/nvme0n1", "/dev/nvme0n1p2"), ("/dev/mmcblk0", "/dev/mmcblk0p2")],
    )
    def test_partition_path(self, disk, expected):
        assert partition_path(disk, 2) == expected

    def test_default_target_is_first_disk(self, make_session):
        session = make_session("disk")
        assert session.fields.get("DISK_TARGET") == "/dev/sda"

    def test_passphrase_fields_need_both_toggles(self, make_session):
        session = make_session("disk")
        assert "ENCRYPTION_PASSPHRASE_LENGTH" not in session.active_fields("disk")
        session.fields.set("ENCRYPTION_USE_PASSPHRASE", "true")
        assert "ENCRYPTION_PASSPHRASE_LENGTH" in session.active_fields("disk")
        session.fields.set("ENCRYPTION", "false")
        assert session.active_fields("disk") == ["DISK_TARGET", "ENCRYPTION", "PARTITION_SCHEME"]


class TestSystem:
    def test_admin_user(self):
        text = SystemModule().generate({"ADMIN_USER": "alice"})
        assert "users.users.alice.isNormalUser = true;" in text
        assert 'users.users.alice.extraGroups = [ "wheel" "networkmanager" ];' in text


class TestRegion:
    def test_locales_and_keyboard(self):
        text = RegionModule().generate(
            {
                "TIMEZONE": "Europe/Berlin",
                "LOCALE_MAIN": "de_DE.UTF-8",
                "LOCALE_EXTRA": "de_DE.UTF-8 en_US.UTF-8",
                "KEYBOARD_LAYOUT": "de",
                "KEYBOARD_VARIANT": "nodeadkeys",
            }
        )
        assert text.splitlines() == [
            'time.timeZone = "Europe/Berlin";',
            'i18n.defaultLocale = "de_DE.UTF-8";',
            'i18n.supportedLocales = [ "de_DE.UTF-8/UTF-8" "en_US.UTF-8/UTF-8" ];',
            'console.keyMap = "de";',
            'services.xserver.xkb.layout = "de";',
            'services.xserver.xkb.variant = "nodeadkeys";',
        ]

    def test_country_applies_defaults(self, make_session):
        session = make_session("region")

        assert session.fields.apply("COUNTRY", "ch") is None

        assert session.fields.get("COUNTRY") == "CH"
        assert session.fields.get("TIMEZONE") == "Europe/Zurich"
        assert session.fields.get("LOCALE_MAIN") == "de_CH.UTF-8"
        assert session.fields.get("KEYBOARD_LAYOUT") == "ch"

    def test_country_keeps_explicit_values(self, make_session):
        session = make_session("region")
        session.fields.set("TIMEZONE", "Asia/Tokyo")

        session.fields.set("COUNTRY", "DE")

        assert session.fields.get("TIMEZONE") == "Asia/Tokyo"
        assert session.fields.get("LOCALE_MAIN") == "de_DE.UTF-8"
        assert session.fields.default("TIMEZONE") == "Europe/Berlin"

    def test_unknown_country_changes_nothing(self, make_session):
        session = make_session("region")
        session.fields.set("COUNTRY", "XX")
        assert session.fields.get("TIMEZONE") == "UTC"


class TestSSH:
    def test_disabled(self):
        assert SSHModule().generate({"SSH_ENABLE": "false"}) == "services.openssh.enable = false;"

    def test_enabled_with_keys(self):
        text = SSHModule().generate(
            {
                "SSH_ENABLE": "true",
                "SSH_PORT": "2222",
                "SSH_PASSWORD_AUTH": "false",
                "SSH_ROOT_LOGIN": "prohibit-password",
                "SSH_AUTHORIZED_KEYS": "ssh-ed25519 AAAA one; ssh-rsa BBBB two",
                "ADMIN_USER": "alice",
            }
        )
        assert "  ports = [ 2222 ];" in text
        assert "    PasswordAuthentication = false;" in text
        assert '    PermitRootLogin = "prohibit-password";' in text
        assert text.endswith(
            "users.users.alice.openssh.authorizedKeys.keys = [\n"
            '  "ssh-ed25519 AAAA one"\n'
            '  "ssh-rsa BBBB two"\n'
            "];"
        )

    def test_split_keys(self):
        assert split_keys("a\n\nb;c ; ") == ["a", "b", "c"]

    def test_no_authentication_method(self, make_session):
        session = make_session("ssh")
        session.fields.set("SSH_KEY_METHOD", "none")

        issues = session.validate_module("ssh")

        assert [i.message for i in issues] == ["No SSH authentication method configured"]
        assert issues[0].fields == ("SSH_PASSWORD_AUTH", "SSH_KEY_METHOD")

    def test_disabled_skips_checks(self, make_session):
        session = make_session("ssh")
        session.fields.set("SSH_KEY_METHOD", "none")
        session.fields.set("SSH_ENABLE", "false")
        assert session.validate_module("ssh") == []


class TestPackages:
    def test_deduplicates_and_enables_flakes(self):
        text = PackagesModule().generate(
            {
                "ESSENTIAL_PACKAGES": "vim git",
                "ADDITIONAL_PACKAGES": "git  ripgrep",
                "ENABLE_FLAKES": "true",
            }
        )
        assert text == (
            "environment.systemPackages = with pkgs; [\n"
            "  vim\n"
            "  git\n"
            "  ripgrep\n"
            "];\n"
            "\n"
            'nix.settings.experimental-features = [ "nix-command" "flakes" ];'
        )

    def test_nothing_to_render(self):
        assert PackagesModule().generate({"ENABLE_FLAKES": "false"}) is None

    def test_rejects_shell_metacharacters(self, make_session):
        session = make_session("packages")
        assert session.fields.apply("ADDITIONAL_PACKAGES", "vim; rm -rf /") is not None


class TestSecurity:
    def test_firewall_and_fail2ban(self):
        text = SecurityModule().generate(
            {
                "FIREWALL_ENABLE": "true",
                "FIREWALL_ALLOW_PORTS_TCP": "22 443",
                "HARDENING_ENABLE": "false",
                "FAIL2BAN_ENABLE": "true",
            }
        )
        assert "  allowedTCPPorts = [ 22 443 ];" in text
        assert "  allowedUDPPorts = [ ];" in text
        assert "services.fail2ban = {" in text
        assert "protectKernelImage" not in text

    def test_firewall_disabled(self):
        text = SecurityModule().generate({"FIREWALL_ENABLE": "false"})
        assert text == "networking.firewall.enable = false;"

    def test_invalid_ports(self):
        assert invalid_ports("22 http 70000 0 443") == ["http", "70000", "0"]

    def test_port_list_validation(self, make_session):
        session = make_session("security")
        session.fields.set("FIREWALL_ALLOW_PORTS_TCP", "22 ssh")

        issues = session.validate_module("security")

        assert [i.message for i in issues] == ["Allowed TCP Ports contains invalid ports: ssh"]

        session.fields.set("FIREWALL_ENABLE", "false")
        assert session.validate_module("security") == []


class TestFullDocument:
    def test_every_module_contributes_once(self, session):
        session.fields.set("HOSTNAME", "web01")

        document = session.generate("Generated for tests")

        assert document.startswith("# Generated for tests\n\n{ config, pkgs, ... }:\n")
        owners = [line.strip() for line in document.splitlines() if "# ===" in line]
        assert owners == [
            "# === boot ===",
            "# === network ===",
            "# === disk ===",
            "# === region ===",
            "# === system ===",
            "# === ssh ===",
            "# === packages ===",
            "# === security ===",
        ]
        assert document.count("networking.firewall") == 1
        assert document.rstrip().endswith("}")
