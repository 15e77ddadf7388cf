"""Tests for the command-line tool."""

import json

import pytest

from wmi_records.cli import main, parse_value


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "types.json"
    path.write_text(
        json.dumps(
            {
                "types": {
                    "Sms": {"site": "smsserver.sample.com", "namespace": "root\\sms\\site_100"},
                    "Computer": {
                        "parent": "Sms",
                        "element_name": "SMS_R_System",
                        "key": "ResourceID",
                        "aliases": {"user": "lastlogonusername"},
                    },
                    "ComputerBios": {
                        "parent": "Sms",
                        "element_name": "SMS_G_System_PC_BIOS",
                        "key": ["GroupID", "ResourceID"],
                    },
                }
            }
        )
    )
    return str(path)


class TestParseValue:
    """Tests for command-line value parsing."""

    def test_json_values(self):
        assert parse_value("42") == 42
        assert parse_value("1.5") == 1.5
        assert parse_value("true") is True
        assert parse_value("null") is None
        assert parse_value('"42"') == "42"

    def test_plain_text(self):
        assert parse_value("jsmith") == "jsmith"
        assert parse_value("LAB%") == "LAB%"


class TestTypesCommand:
    """Tests for listing entity types."""

    def test_lists_types_and_aliases(self, config_file, capsys):
        assert main(["-c", config_file, "types"]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out == [
            "Sms: sms (key: id)",
            "Computer: SMS_R_System (key: ResourceID)",
            "    user -> lastlogonusername",
            "ComputerBios: SMS_G_System_PC_BIOS (key: GroupID, ResourceID)",
        ]


class TestQueryCommand:
    """Tests for printing queries."""

    def test_no_condition(self, config_file, capsys):
        assert main(["-c", config_file, "query", "Computer"]) == 0
        assert capsys.readouterr().out.strip() == "SELECT * FROM SMS_R_System"

    def test_where_with_alias(self, config_file, capsys):
        assert main(["-c", config_file, "query", "Computer", "-w", "user=jsmith", "-w", "Active=true"]) == 0
        assert capsys.readouterr().out.strip() == (
            "SELECT * FROM SMS_R_System WHERE lastlogonusername = 'jsmith' AND Active = TRUE"
        )

    def test_raw(self, config_file, capsys):
        argv = ["-c", config_file, "query", "Computer", "--raw", "Name LIKE ? AND ResourceID > ?",
                "--value", "LAB%", "--value", "100"]
        assert main(argv) == 0
        assert capsys.readouterr().out.strip() == (
            "SELECT * FROM SMS_R_System WHERE Name LIKE 'LAB%' AND ResourceID > 100"
        )

    def test_raw_and_where(self, config_file, capsys):
        argv = ["-c", config_file, "query", "Computer", "-r", "Name = ?", "--value", "x", "-w", "a=1"]
        assert main(argv) == 1
        assert "Error:" in capsys.readouterr().err

    def test_marker_count_mismatch(self, config_file, capsys):
        assert main(["-c", config_file, "query", "Computer", "-r", "Name = ?"]) == 1
        assert "wrong number of bind variables" in capsys.readouterr().err

    def test_bad_where(self, config_file, capsys):
        assert main(["-c", config_file, "query", "Computer", "-w", "jsmith"]) == 1
        assert "FIELD=VALUE" in capsys.readouterr().err

    def test_unknown_type(self, config_file, capsys):
        assert main(["-c", config_file, "query", "Printer"]) == 1
        assert capsys.readouterr().err.strip() == "Error: Type 'Printer' not found"


class TestLocatorCommand:
    """Tests for printing object paths."""

    def test_single_key(self, config_file, capsys):
        assert main(["-c", config_file, "locator", "Computer", "74939"]) == 0
        assert capsys.readouterr().out.strip() == "SMS_R_System.ResourceID=74939"

    def test_string_key(self, config_file, capsys):
        assert main(["-c", config_file, "locator", "Computer", "ab12"]) == 0
        assert capsys.readouterr().out.strip() == 'SMS_R_System.ResourceID="ab12"'

    def test_composite_key(self, config_file, capsys):
        assert main(["-c", config_file, "locator", "ComputerBios", "40133", "74939"]) == 0
        assert capsys.readouterr().out.strip() == "SMS_G_System_PC_BIOS.GroupID=40133,ResourceID=74939"

    def test_wrong_key_count(self, config_file, capsys):
        assert main(["-c", config_file, "locator", "ComputerBios", "40133"]) == 1
        assert "Error:" in capsys.readouterr().err


class TestErrors:
    """Tests for configuration failures."""

    def test_missing_config(self, tmp_path, capsys):
        assert main(["-c", str(tmp_path / "missing.json"), "types"]) == 1
        assert "not found" in capsys.readouterr().err

    def test_invalid_config(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text("[]")
        assert main(["-c", str(path), "types"]) == 1
        assert "types" in capsys.readouterr().err
