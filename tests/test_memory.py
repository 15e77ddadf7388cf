"""Tests for the WQL parser and the in-memory namespace."""

import pytest

from wmi_records.errors import NotFoundError, RemoteError
from wmi_records.memory import INVALID_CLASS_CODE, INVALID_PARAMETER_CODE, MemoryStore
from wmi_records.parsing import ObjectPath, SelectStatement, WqlParser
from wmi_records.parsing.wql_lexer import INVALID_QUERY_CODE, WqlLexer
from wmi_records.predicates import Comparison, Conjunction, Negation


@pytest.fixture
def parser():
    return WqlParser()


@pytest.fixture
def store():
    store = MemoryStore()
    store.define_class(
        "SMS_R_System",
        ["Name", "LastLogonUserName", "Active", "Memory"],
        key_fields="ResourceID",
        auto_key=True,
    )
    store.insert("SMS_R_System", Name="LAB-PC-01", LastLogonUserName="jsmith", Active=True, Memory=8192)
    store.insert("SMS_R_System", Name="LAB-PC-02", LastLogonUserName="o'brien", Active=False, Memory=4096)
    store.insert("SMS_R_System", Name="OFFICE-01", Active=True, Memory=16384)
    return store


@pytest.fixture
def connection(store):
    return store.connect()


def names(handles):
    return [handle.get_property("Name") for handle in handles]


class TestWqlLexer:
    """Tests for WQL tokenization."""

    def test_keywords_case_insensitive(self):
        tokens = WqlLexer().tokenize("select * From x wHeRe a is not null")
        assert [t.type for t in tokens] == [
            "SELECT", "STAR", "FROM", "IDENTIFIER", "WHERE", "IDENTIFIER", "IS", "NOT", "NULL",
        ]

    def test_literals(self):
        tokens = WqlLexer().tokenize("'it''s' \"a\\\"b\" -12 1.5")
        assert [(t.type, t.value) for t in tokens] == [
            ("STRING", "it's"),
            ("STRING", 'a"b'),
            ("INTEGER", -12),
            ("FLOAT", 1.5),
        ]

    def test_illegal_character(self):
        with pytest.raises(RemoteError) as exc_info:
            WqlLexer().tokenize("SELECT * FROM x WHERE a = #")
        assert exc_info.value.code == INVALID_QUERY_CODE


class TestWqlParser:
    """Tests for parsing queries and object paths."""

    def test_select_all(self, parser):
        assert parser.parse("SELECT * FROM SMS_R_System") == SelectStatement("SMS_R_System")

    def test_comparison(self, parser):
        statement = parser.parse("SELECT * FROM x WHERE Name <> 'a'")
        assert statement.where == Comparison("Name", "<>", "a")

    def test_null_tests(self, parser):
        assert parser.parse("SELECT * FROM x WHERE a IS NULL").where == Comparison("a", "IS", None)
        assert parser.parse("SELECT * FROM x WHERE a IS NOT NULL").where == Comparison("a", "IS NOT", None)

    def test_and_binds_tighter_than_or(self, parser):
        statement = parser.parse("SELECT * FROM x WHERE a = 1 OR b = 2 AND c = 3")
        assert statement.where == Conjunction(
            "OR",
            [Comparison("a", "=", 1), Conjunction("AND", [Comparison("b", "=", 2), Comparison("c", "=", 3)])],
        )

    def test_chains_flatten(self, parser):
        statement = parser.parse("SELECT * FROM x WHERE a = 1 and b = 2 and c = TRUE")
        assert statement.where == Conjunction(
            "AND", [Comparison("a", "=", 1), Comparison("b", "=", 2), Comparison("c", "=", True)]
        )

    def test_parentheses_and_not(self, parser):
        statement = parser.parse("SELECT * FROM x WHERE NOT (a = 1 OR b LIKE 'x%')")
        assert statement.where == Negation(
            Conjunction("OR", [Comparison("a", "=", 1), Comparison("b", "LIKE", "x%")])
        )

    def test_object_path(self, parser):
        path = parser.parse('SMS_G_System_PC_BIOS.GroupID=40133,ResourceID="ab\\"12"')
        assert path == ObjectPath("SMS_G_System_PC_BIOS", [("GroupID", 40133), ("ResourceID", 'ab"12')])

    def test_syntax_error(self, parser):
        with pytest.raises(RemoteError) as exc_info:
            parser.parse("SELECT Name FROM x")
        assert exc_info.value.code == INVALID_QUERY_CODE

    def test_unexpected_end(self, parser):
        with pytest.raises(RemoteError, match="end of input"):
            parser.parse("SELECT * FROM x WHERE")


class TestQueries:
    """Tests for executing queries against the store."""

    def test_select_all(self, connection):
        assert names(connection.execute_query("SELECT * FROM SMS_R_System")) == [
            "LAB-PC-01", "LAB-PC-02", "OFFICE-01",
        ]

    def test_class_name_case_insensitive(self, connection):
        assert len(connection.execute_query("SELECT * FROM sms_r_system")) == 3

    def test_string_equality_ignores_case(self, connection):
        query = "SELECT * FROM SMS_R_System WHERE lastlogonusername = 'JSMITH'"
        assert names(connection.execute_query(query)) == ["LAB-PC-01"]

    def test_escaped_quote(self, connection):
        query = "SELECT * FROM SMS_R_System WHERE LastLogonUserName = 'o''brien'"
        assert names(connection.execute_query(query)) == ["LAB-PC-02"]

    def test_like(self, connection):
        query = "SELECT * FROM SMS_R_System WHERE Name LIKE 'lab-pc-0_'"
        assert names(connection.execute_query(query)) == ["LAB-PC-01", "LAB-PC-02"]

    def test_numeric_comparison(self, connection):
        query = "SELECT * FROM SMS_R_System WHERE Memory >= 8192 AND Active = TRUE"
        assert names(connection.execute_query(query)) == ["LAB-PC-01", "OFFICE-01"]

    def test_null(self, connection):
        query = "SELECT * FROM SMS_R_System WHERE LastLogonUserName IS NULL"
        assert names(connection.execute_query(query)) == ["OFFICE-01"]
        query = "SELECT * FROM SMS_R_System WHERE LastLogonUserName <> NULL"
        assert names(connection.execute_query(query)) == ["LAB-PC-01", "LAB-PC-02"]

    def test_mismatched_types_do_not_match(self, connection):
        query = "SELECT * FROM SMS_R_System WHERE Memory > 'big'"
        assert connection.execute_query(query) == []

    def test_unknown_property(self, connection):
        with pytest.raises(RemoteError) as exc_info:
            connection.execute_query("SELECT * FROM SMS_R_System WHERE Colour = 'red'")
        assert exc_info.value.code == INVALID_QUERY_CODE

    def test_unknown_class(self, connection):
        with pytest.raises(RemoteError) as exc_info:
            connection.execute_query("SELECT * FROM Win32_Nothing")
        assert exc_info.value.code == INVALID_CLASS_CODE

    def test_object_path_is_not_a_query(self, connection):
        with pytest.raises(RemoteError):
            connection.execute_query("SMS_R_System.ResourceID=1")


class TestObjects:
    """Tests for fetching, spawning and committing objects."""

    def test_fetch(self, connection):
        handle = connection.fetch("SMS_R_System.ResourceID=2")
        assert handle.get_property("name") == "LAB-PC-02"
        assert handle.path == "SMS_R_System.ResourceID=2"

    def test_fetch_missing(self, connection):
        with pytest.raises(NotFoundError):
            connection.fetch("SMS_R_System.ResourceID=99")

    def test_fetch_wrong_keys(self, connection):
        with pytest.raises(RemoteError) as exc_info:
            connection.fetch("SMS_R_System.Name=\"LAB-PC-01\"")
        assert exc_info.value.code == INVALID_PARAMETER_CODE

    def test_fetch_query_is_rejected(self, connection):
        with pytest.raises(RemoteError):
            connection.fetch("SELECT * FROM SMS_R_System")

    def test_handles_are_snapshots(self, store, connection):
        handle = connection.fetch("SMS_R_System.ResourceID=1")
        handle.set_property("Name", "CHANGED")
        assert store.objects("SMS_R_System")[0]["Name"] == "LAB-PC-01"
        assert handle.put() == "SMS_R_System.ResourceID=1"
        assert store.objects("SMS_R_System")[0]["Name"] == "CHANGED"

    def test_unknown_property(self, connection):
        handle = connection.fetch("SMS_R_System.ResourceID=1")
        with pytest.raises(KeyError):
            handle.get_property("Colour")
        with pytest.raises(KeyError):
            handle.set_property("Colour", "red")

    def test_spawn_and_put(self, store, connection):
        handle = connection.spawn("SMS_R_System")
        assert handle.path is None
        assert dict(handle.properties())["Name"] is None
        handle.set_property("Name", "NEW")
        assert handle.put() == "SMS_R_System.ResourceID=4"
        assert len(store.objects("SMS_R_System")) == 4

    def test_delete(self, store, connection):
        handle = connection.fetch("SMS_R_System.ResourceID=1")
        handle.delete()
        assert len(store.objects("SMS_R_System")) == 2
        with pytest.raises(NotFoundError):
            handle.delete()

    def test_missing_key_on_commit(self, store):
        store.define_class("Pair", ["Value"], key_fields=["A", "B"])
        handle = store.connect().spawn("Pair")
        handle.set_property("A", 1)
        with pytest.raises(RemoteError) as exc_info:
            handle.put()
        assert exc_info.value.code == INVALID_PARAMETER_CODE

    def test_key_fields_added_to_properties(self, store):
        cls = store.define_class("Pair", ["Value"], key_fields=["A", "B"])
        assert set(cls.properties) == {"A", "B", "Value"}

    def test_auto_key_needs_single_key(self, store):
        with pytest.raises(ValueError):
            store.define_class("Pair", ["Value"], key_fields=["A", "B"], auto_key=True)

    def test_insert_unknown_property(self, store):
        with pytest.raises(KeyError):
            store.insert("SMS_R_System", Colour="red")
