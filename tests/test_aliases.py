"""Tests for the field alias table."""

from wmi_records.aliases import FieldAliasTable


class TestFieldAliasTable:
    """Tests for FieldAliasTable."""

    def test_resolve_registered(self):
        table = FieldAliasTable()
        table.register("user", "lastlogonusername")
        assert table.resolve("user") == "lastlogonusername"

    def test_resolve_unregistered_returns_input(self):
        table = FieldAliasTable({"user": "lastlogonusername"})
        assert table.resolve("Name") == "Name"

    def test_last_write_wins(self):
        table = FieldAliasTable()
        table.register("user", "lastlogonusername")
        table.register("user", "username")
        assert table.resolve("user") == "username"
        assert len(table) == 1

    def test_resolution_is_exact(self):
        """Friendly names are matched exactly."""
        table = FieldAliasTable({"user": "lastlogonusername"})
        assert table.resolve("USER") == "USER"

    def test_contains_and_items(self):
        table = FieldAliasTable({"user": "lastlogonusername", "domain": "resourcedomainorworkgroup"})
        assert "user" in table
        assert "lastlogonusername" not in table
        assert table.items() == [
            ("user", "lastlogonusername"),
            ("domain", "resourcedomainorworkgroup"),
        ]

    def test_merged(self):
        """Entries of the other table win, and neither input changes."""
        base = FieldAliasTable({"user": "lastlogonusername", "domain": "resourcedomainorworkgroup"})
        local = FieldAliasTable({"user": "username"})
        merged = base.merged(local)
        assert merged.resolve("user") == "username"
        assert merged.resolve("domain") == "resourcedomainorworkgroup"
        assert base.resolve("user") == "lastlogonusername"

    def test_equality(self):
        assert FieldAliasTable({"a": "b"}) == FieldAliasTable({"a": "b"})
        assert FieldAliasTable({"a": "b"}) != FieldAliasTable({"a": "c"})
