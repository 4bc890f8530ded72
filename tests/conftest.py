"""Shared fixtures: describe payloads and job factories."""

import pytest

from taskplan.job import MigrationJob
from taskplan.services.describe_client import StaticDescribeClient


def sf_field(name, type="string", createable=True, updateable=True, **extra):
    data = {
        "name": name,
        "label": name,
        "type": type,
        "createable": createable,
        "updateable": updateable,
    }
    data.update(extra)
    return data


def sf_lookup(name, reference_to, **extra):
    return sf_field(name, type="reference", referenceTo=[reference_to], **extra)


@pytest.fixture
def account_payload():
    return {
        "name": "Account",
        "label": "Account",
        "fields": [
            sf_field("Id", type="id", createable=False, updateable=False),
            sf_field("Name"),
            sf_lookup("ParentId", "Account"),
            sf_lookup("OwnerId", "User"),
            sf_field("ExternalKey__c", custom=True),
            sf_field("Phone", type="phone"),
        ],
    }


@pytest.fixture
def contact_payload():
    return {
        "name": "Contact",
        "label": "Contact",
        "fields": [
            sf_field("Id", type="id", createable=False, updateable=False),
            sf_field("Name", createable=False, updateable=False),
            sf_field("FirstName"),
            sf_field("LastName"),
            sf_field("Email", type="email"),
            sf_lookup("AccountId", "Account"),
            sf_lookup("Partner_Account__c", "Account", custom=True),
            sf_lookup("IndividualId", "Individual"),
            sf_field("SystemField", createable=False, updateable=False),
        ],
    }


@pytest.fixture
def invoice_payload():
    return {
        "name": "Invoice__c",
        "label": "Invoice",
        "custom": True,
        "fields": [
            sf_field("Id", type="id", createable=False, updateable=False),
            sf_field("Name", type="string", createable=False, updateable=False, autoNumber=True),
            sf_lookup("Account__c", "Account", relationshipOrder=0, cascadeDelete=True, custom=True),
            sf_lookup("Contact__c", "Contact", custom=True),
        ],
    }


@pytest.fixture
def make_client():
    """Factory for a static describe client serving the given payloads."""
    def _make(payloads, side="source"):
        client = StaticDescribeClient(side=side)
        for payload in payloads:
            client.register_payload(payload)
        return client
    return _make


@pytest.fixture
def make_job(make_client):
    """
    Factory for a job whose sides are served from describe payloads.

    target_payloads defaults to the source payloads.
    """
    def _make(objects, payloads=(), target_payloads=None, source_media="org",
              target_media="org", **settings):
        source_client = make_client(payloads, side="source")
        target_client = make_client(payloads if target_payloads is None else target_payloads, side="target")
        config = {
            "objects": objects,
            "source": {"media": source_media},
            "target": {"media": target_media},
        }
        config.update(settings)
        return MigrationJob.from_dict(config, source_client=source_client, target_client=target_client)
    return _make
