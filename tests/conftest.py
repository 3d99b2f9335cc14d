"""Pytest fixtures for pricing, contract and checkout tests."""

import random

import pytest

from palworks.database.postgres import PostgresDB
from palworks.database.redis import RedisCache
from palworks.integrations.clients.mocks.payments import MockPaymentsClient
from palworks.integrations.clients.mocks.static_addon_catalogue import StaticAddonCatalogueClient
from palworks.integrations.policy.addon_catalogue_service import AddonCatalogueService
from palworks.utils.config_loader import load_pricing_config


@pytest.fixture
def db():
    """In-memory PostgresDB stub for tests."""
    return PostgresDB()


@pytest.fixture
def cache():
    return RedisCache()


@pytest.fixture
def pricing_config():
    return load_pricing_config()


@pytest.fixture
def catalogue():
    return AddonCatalogueService(StaticAddonCatalogueClient())


@pytest.fixture
def sample_catalog():
    return [
        {"addon_key": "explanation", "name": "Vertragserläuterungen", "price": 9.90},
        {"addon_key": "handover_protocol", "name": "Übergabeprotokoll", "price": 7.90},
    ]


@pytest.fixture
def always_succeeds():
    return MockPaymentsClient(success_rate=1.0, rng=random.Random(1))


@pytest.fixture
def always_fails():
    return MockPaymentsClient(success_rate=0.0, rng=random.Random(1))


@pytest.fixture
def garage_form():
    return {
        "landlord_firstname": "Erika",
        "landlord_lastname": "Muster",
        "landlord_address": "Hauptstraße 1",
        "landlord_postal": "10115",
        "landlord_city": "Berlin",
        "tenant_firstname": "Max",
        "tenant_lastname": "Mieter",
        "tenant_address": "Nebenstraße 2",
        "tenant_postal": "10117",
        "tenant_city": "Berlin",
        "garage_same_address": False,
        "garage_address": "Hofweg 3",
        "garage_postal": "10119",
        "garage_city": "Berlin",
        "garage_type": "garage",
        "start_date": "2025-03-01",
        "garage_lease_type": "unbefristet",
        "rent": "85",
        "customer_email": "max@example.de",
    }
