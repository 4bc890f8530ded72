"""Tests for taskplan.soql."""

import pytest

from taskplan.errors import QueryParseError
from taskplan.soql import (
    compose_query,
    compose_where_clause,
    distinct_fields,
    field_ref,
    parse_query,
)


def test_parse_simple_query():
    query = parse_query("SELECT Id, Name FROM Account")
    assert query.sobject == "Account"
    assert query.field_names == ["Id", "Name"]
    assert query.where is None
    assert query.limit is None


def test_parse_all_clauses():
    query = parse_query(
        "SELECT Name FROM Account WHERE Name = 'ACME LIMIT 5' ORDER BY Name DESC LIMIT 10 OFFSET 5"
    )
    assert query.where == "Name = 'ACME LIMIT 5'"
    assert query.order_by == "Name DESC"
    assert query.limit == 10
    assert query.offset == 5


def test_parse_keeps_sub_query_in_where():
    text = "SELECT Id FROM Contact WHERE AccountId IN (SELECT Id FROM Account WHERE Name = 'x')"
    query = parse_query(text)
    assert query.sobject == "Contact"
    assert query.where == "AccountId IN (SELECT Id FROM Account WHERE Name = 'x')"


def test_parse_is_case_insensitive_for_keywords_only():
    query = parse_query("select firstName from contact")
    assert query.sobject == "contact"
    assert query.field_names == ["firstName"]
    assert compose_query(query) == "SELECT firstName FROM contact"


def test_parse_complex_and_relationship_fields():
    query = parse_query("SELECT $$Name$Account.Name, Account.Name, Email FROM Contact")
    assert query.field_names == ["$$Name$Account.Name", "Account.Name", "Email"]
    assert [f.is_complex for f in query.fields] == [True, True, False]


def test_parse_composite_field_with_leading_relationship_path():
    text = "SELECT Id, $$Account.Name$LastName FROM Contact WHERE LastName != null"
    query = parse_query(text)
    assert query.field_names == ["Id", "$$Account.Name$LastName"]
    assert query.fields[1].is_complex
    assert compose_query(query) == text


@pytest.mark.parametrize("text", [
    "",
    "   ",
    "Name FROM Account",
    "SELECT FROM Account",
    "SELECT Name",
    "SELECT Name FROM",
    "SELECT Name, FROM Account",
    "SELECT COUNT(Id) FROM Account",
    "SELECT Name FROM Account LIMIT x",
    "SELECT Name FROM Account WHERE Name = 'x",
    "SELECT Name FROM Account LIMIT 1 WHERE Name = 'a'",
    "SELECT Name FROM Account WHERE (Name = 'a'",
    "SELECT Name FROM Account WHERE",
])
def test_parse_rejects_malformed_queries(text):
    with pytest.raises(QueryParseError):
        parse_query(text)


def test_compose_is_canonical():
    text = "SELECT Id, Name FROM Account WHERE Name != null ORDER BY Name LIMIT 10"
    assert compose_query(parse_query(text)) == text


def test_compose_normalizes_spacing():
    query = parse_query("SELECT   Id ,Name\n FROM   Account")
    assert compose_query(query) == "SELECT Id, Name FROM Account"


def test_with_fields_returns_new_query():
    query = parse_query("SELECT Id, Name FROM Account WHERE Name != null")
    narrowed = query.with_fields([field_ref("Id")])
    assert narrowed.field_names == ["Id"]
    assert narrowed.where == "Name != null"
    assert query.field_names == ["Id", "Name"]


def test_compose_where_clause_without_existing_filter():
    assert compose_where_clause(None, "IsPersonAccount", "false") == "IsPersonAccount = false"


def test_compose_where_clause_with_existing_filter():
    where = compose_where_clause("Name = 'a' OR Name = 'b'", "IsPersonAccount", "false")
    assert where == "(Name = 'a' OR Name = 'b') AND IsPersonAccount = false"


def test_compose_where_clause_quotes_strings():
    where = compose_where_clause(None, "LastName", "O'Brien", literal_type="STRING")
    assert where == "LastName = 'O\\'Brien'"


def test_distinct_fields_keeps_first_occurrence():
    fields = [field_ref("Id"), field_ref("Name"), field_ref("Id"), field_ref("Email"), field_ref("Name")]
    assert [f.field for f in distinct_fields(fields)] == ["Id", "Name", "Email"]
