"""Tests for taskplan.services.describe_client."""

import asyncio
import json
from unittest.mock import MagicMock

import pytest
import requests

from taskplan.errors import MetadataError
from taskplan.models.migration import OrgConnection
from taskplan.services.describe_client import SalesforceDescribeClient, StaticDescribeClient


@pytest.fixture
def connection():
    return OrgConnection(
        name="source",
        instance_url="https://example.my.salesforce.com/",
        access_token="token-123",
        api_version="60.0",
    )


def _session_returning(payload=None, error=None):
    response = MagicMock()
    response.json.return_value = payload
    if error is not None:
        response.raise_for_status.side_effect = error
    session = MagicMock()
    session.get.return_value = response
    return session


def test_describe_entity_calls_rest_api(connection, account_payload):
    session = _session_returning(account_payload)
    client = SalesforceDescribeClient(connection, session=session, timeout=10.0)

    snapshot = asyncio.run(client.describe_entity("Account"))

    assert snapshot.entity_name == "Account"
    assert snapshot.has_field("ExternalKey__c")
    session.get.assert_called_once_with(
        "https://example.my.salesforce.com/services/data/v60.0/sobjects/Account/describe",
        headers={"Accept": "application/json", "Authorization": "Bearer token-123"},
        timeout=10.0,
    )


def test_not_found_is_metadata_error(connection):
    not_found = MagicMock(status_code=404)
    session = _session_returning(error=requests.exceptions.HTTPError(response=not_found))
    client = SalesforceDescribeClient(connection, session=session)

    with pytest.raises(MetadataError) as exc_info:
        client.describe_entity_sync("Missing__c")

    assert exc_info.value.entity == "Missing__c"
    assert exc_info.value.side == "source"
    assert "not found" in str(exc_info.value)


def test_server_error_is_metadata_error(connection):
    server_error = MagicMock(status_code=500)
    session = _session_returning(error=requests.exceptions.HTTPError(response=server_error))
    client = SalesforceDescribeClient(connection, session=session)

    with pytest.raises(MetadataError) as exc_info:
        client.describe_entity_sync("Account")

    assert "HTTP 500" in str(exc_info.value)


def test_connection_error_is_metadata_error(connection):
    session = MagicMock()
    session.get.side_effect = requests.exceptions.ConnectionError("refused")
    client = SalesforceDescribeClient(connection, session=session)

    with pytest.raises(MetadataError):
        asyncio.run(client.describe_entity("Account"))


def test_missing_instance_url():
    client = SalesforceDescribeClient(OrgConnection(name="target"), session=MagicMock())
    with pytest.raises(MetadataError) as exc_info:
        client.describe_entity_sync("Account")
    assert exc_info.value.side == "target"


def test_default_session_has_retries(connection):
    client = SalesforceDescribeClient(connection, retry_config={"max_retries": 5, "backoff_factor": 0.5})
    adapter = client._session.get_adapter("https://example.my.salesforce.com")
    assert adapter.max_retries.total == 5
    assert adapter.max_retries.backoff_factor == 0.5


def test_static_client_lookup_is_case_insensitive(account_payload):
    client = StaticDescribeClient(side="target")
    client.register_payload(account_payload)

    snapshot = asyncio.run(client.describe_entity("account"))

    assert snapshot.entity_name == "Account"
    assert client.list_entities() == ["Account"]


def test_static_client_unknown_object(account_payload):
    client = StaticDescribeClient(side="target")
    with pytest.raises(MetadataError) as exc_info:
        asyncio.run(client.describe_entity("Account"))
    assert exc_info.value.side == "target"


def test_load_from_directory(tmp_path, account_payload, contact_payload):
    (tmp_path / "Account.json").write_text(json.dumps(account_payload))
    nested = tmp_path / "more"
    nested.mkdir()
    (nested / "Contact.json").write_text(json.dumps(contact_payload))
    (tmp_path / "broken.json").write_text("{not json")
    (tmp_path / "nameless.json").write_text(json.dumps({"fields": []}))

    client = StaticDescribeClient(schemas_dir=str(tmp_path))

    assert sorted(client.list_entities()) == ["Account", "Contact"]


def test_load_from_missing_directory(tmp_path):
    client = StaticDescribeClient()
    assert client.load_from_directory(str(tmp_path / "missing")) == 0
