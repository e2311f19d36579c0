"""Tests for the configuration block registry."""

from nixwizard.lib.blocks import ConfigBlockRegistry, nix_bool, nix_string


class TestOrdering:
    def test_priority_then_owner_then_sequence(self):
        blocks = ConfigBlockRegistry()
        blocks.register("ssh", "c", 50)
        blocks.register("boot", "a", 10)
        blocks.register("region", "b2", 40)
        blocks.register("disk", "x", 40)
        blocks.register("region", "b1", 40)

        ordered = [(b.owner, b.text) for b in blocks.blocks()]

        assert ordered == [
            ("boot", "a"),
            ("disk", "x"),
            ("region", "b2"),
            ("region", "b1"),
            ("ssh", "c"),
        ]

    def test_render_all_separates_blocks(self):
        blocks = ConfigBlockRegistry()
        blocks.register("b", "second", 20)
        blocks.register("a", "first\n", 10)
        assert blocks.render_all() == "first\n\nsecond"

    def test_clear(self):
        blocks = ConfigBlockRegistry()
        blocks.register("a", "text")
        blocks.header = "old"
        blocks.clear()
        assert len(blocks) == 0
        assert blocks.header is None


class TestRenderDocument:
    def test_document_layout(self):
        blocks = ConfigBlockRegistry()
        blocks.register("network", 'networking.hostName = "web01";', 20)
        blocks.register("boot", "boot.loader = {\n  timeout = 5;\n};", 10)

        document = blocks.render_document("Generated by test\n# already a comment")

        assert document == (
            "# Generated by test\n"
            "# already a comment\n"
            "\n"
            "{ config, pkgs, ... }:\n"
            "\n"
            "{\n"
            "  # === boot ===\n"
            "  boot.loader = {\n"
            "    timeout = 5;\n"
            "  };\n"
            "\n"
            "  # === network ===\n"
            '  networking.hostName = "web01";\n'
            "\n"
            "}\n"
        )

    def test_empty_registry_without_header(self):
        assert ConfigBlockRegistry().render_document() == "{ config, pkgs, ... }:\n\n{\n}\n"

    def test_blank_lines_stay_blank(self):
        blocks = ConfigBlockRegistry()
        blocks.register("a", "one;\n\ntwo;")
        assert "  one;\n\n  two;\n" in blocks.render_document()

    def test_write_creates_parent_directories(self, tmp_path):
        blocks = ConfigBlockRegistry()
        blocks.register("system", "security.sudo.wheelNeedsPassword = true;", 40)

        output = blocks.write(tmp_path / "etc" / "nixos" / "configuration.nix", "Header")

        assert output.read_text(encoding="utf-8") == blocks.render_document("Header")


class TestNixLiterals:
    def test_plain_string(self):
        assert nix_string("web01") == '"web01"'

    def test_escapes(self):
        assert nix_string('say "hi"') == '"say \\"hi\\""'
        assert nix_string("C:\\path") == '"C:\\\\path"'
        assert nix_string("${pkgs.vim}") == '"\\${pkgs.vim}"'

    def test_bool(self):
        assert nix_bool(True) == "true"
        assert nix_bool(False) == "false"
