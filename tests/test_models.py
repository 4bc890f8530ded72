"""Tests for the data models and field-name helpers."""

import pytest

from taskplan.constants import complex_field, is_complex_field
from taskplan.models.field import FieldDescriptor, RelationshipKind
from taskplan.models.migration import (
    DataMediaType,
    FieldPredicate,
    MultiselectPattern,
    Operation,
    OrgConnection,
)
from taskplan.models.schema import SchemaSnapshot
from taskplan.resources import get_message


@pytest.mark.parametrize("value,expected", [
    (Operation.UPDATE, Operation.UPDATE),
    ("Insert", Operation.INSERT),
    ("upsert", Operation.UPSERT),
    (" DELETE ", Operation.DELETE),
    (0, Operation.INSERT),
    (4, Operation.DELETE),
    ("3", Operation.READONLY),
])
def test_operation_normalize(value, expected):
    assert Operation.normalize(value) is expected


@pytest.mark.parametrize("value", ["Merge", "", 7, -1, True, None])
def test_operation_normalize_rejects_unknown(value):
    with pytest.raises(ValueError):
        Operation.normalize(value)


def test_data_media_type_from_value():
    assert DataMediaType.from_value(None) is DataMediaType.ORG
    assert DataMediaType.from_value("csvfile") is DataMediaType.FILE
    assert DataMediaType.from_value("ORG") is DataMediaType.ORG


def test_org_connection_from_dict_accepts_both_key_styles():
    camel = OrgConnection.from_dict("source", {"instanceUrl": "https://a.example.com", "apiVersion": 60})
    snake = OrgConnection.from_dict("target", {"instance_url": "https://b.example.com", "media": "file"})

    assert camel.instance_url == "https://a.example.com"
    assert camel.api_version == "60"
    assert camel.is_describable
    assert snake.is_file
    assert not snake.is_describable


def test_org_connection_to_dict_hides_token():
    connection = OrgConnection(name="source", instance_url="https://a.example.com", access_token="secret")
    assert "secret" not in str(connection.to_dict())


def test_complex_field_names():
    assert complex_field("Name;Account.Name") == "$$Name$Account.Name"
    assert complex_field("Name") == "Name"
    assert complex_field("Account.Name") == "Account.Name"

    assert is_complex_field("$$Name$Account.Name")
    assert is_complex_field("Account.Name")
    assert is_complex_field("Name;Email")
    assert not is_complex_field("Name")
    assert not is_complex_field("")


def test_field_descriptor_from_describe_lookup():
    descriptor = FieldDescriptor.from_describe({
        "name": "WhatId",
        "type": "reference",
        "createable": True,
        "updateable": True,
        "referenceTo": ["Account", "Opportunity"],
        "relationshipName": "What",
    })
    assert descriptor.reference_to == "Account"
    assert descriptor.is_lookup
    assert descriptor.is_simple_reference
    assert descriptor.relationship_kind == RelationshipKind.LOOKUP
    assert not descriptor.readonly


def test_field_descriptor_master_detail():
    descriptor = FieldDescriptor.from_describe({
        "name": "Account__c",
        "type": "reference",
        "createable": True,
        "referenceTo": ["Account"],
        "relationshipOrder": 0,
    })
    assert descriptor.is_master_detail
    assert not descriptor.is_simple_reference
    assert descriptor.relationship_kind == RelationshipKind.MASTER_DETAIL


def test_field_descriptor_readonly_flags():
    assert FieldDescriptor(name="Id").readonly
    assert FieldDescriptor(name="Total__c", creatable=True, formula=True).readonly
    assert FieldDescriptor(name="Number__c", creatable=True, auto_number=True).readonly
    assert not FieldDescriptor(name="Name", creatable=True).readonly


def test_dynamic_placeholder():
    descriptor = FieldDescriptor.dynamic("$$Name$Account.Name")
    assert descriptor.is_dynamic
    assert descriptor.is_complex
    assert not descriptor.is_lookup


def test_schema_snapshot_is_immutable(account_payload):
    snapshot = SchemaSnapshot.from_describe(account_payload)
    assert snapshot.field_names[:2] == ["Id", "Name"]
    with pytest.raises(TypeError):
        snapshot.fields["Other"] = FieldDescriptor(name="Other")


def test_schema_snapshot_from_field_dict():
    snapshot = SchemaSnapshot.from_describe({
        "name": "Lead",
        "fields": {"Company": {"type": "string", "createable": True}},
    })
    assert snapshot.has_field("Company")
    assert snapshot.get_field("Company").creatable


def test_schema_snapshot_bind_sets_owner(account_payload):
    snapshot = SchemaSnapshot.from_describe(account_payload)
    bound = snapshot.bind("Account")

    assert bound.get_field("Name").owner_name == "Account"
    assert snapshot.get_field("Name").owner_name is None
    assert bound.get_field("Name").owner_task({"Account": "task"}) == "task"
    assert bound.get_field("ParentId").parent_task({"Account": "task"}) == "task"


def test_pattern_keywords():
    assert MultiselectPattern.is_keyword("all")
    assert MultiselectPattern.is_keyword("Createable_TRUE")
    assert MultiselectPattern.is_keyword("type_picklist")
    assert not MultiselectPattern.is_keyword("type_unknown")
    assert not MultiselectPattern.is_keyword("Name")
    assert not MultiselectPattern.is_keyword("lookup_yes")


def test_pattern_requires_every_predicate():
    pattern = MultiselectPattern()
    pattern.add_keyword("custom_true")
    pattern.add_keyword("lookup_true")

    custom_lookup = FieldDescriptor(name="Partner__c", custom=True, reference_to="Account")
    custom_text = FieldDescriptor(name="Code__c", custom=True)

    assert pattern.matches(custom_lookup)
    assert not pattern.matches(custom_text)
    assert pattern.to_dict() == {"custom": True, "lookup": True}


def test_pattern_types_are_alternatives():
    pattern = MultiselectPattern()
    pattern.add_keyword("type_email")
    pattern.add_keyword("type_phone")

    assert pattern.matches(FieldDescriptor(name="Email", type="email"))
    assert pattern.matches(FieldDescriptor(name="Phone", type="phone"))
    assert not pattern.matches(FieldDescriptor(name="Name", type="string"))


def test_pattern_all_matches_everything():
    pattern = MultiselectPattern(all=True, predicates={FieldPredicate.CUSTOM: True})
    assert pattern.matches(FieldDescriptor(name="Name"))
    assert not pattern.is_empty
    assert MultiselectPattern().is_empty


def test_get_message():
    assert get_message("unknownOperation", "Account", "Merge") == "Account: unknown operation 'Merge'"
    assert get_message("noSuchKey", "a", 1) == "noSuchKey a 1"
