"""
Service wiring for the API.

Purpose:
- Pick in-memory stubs or real backends from the environment, in one place
- Hand the wired services to the routers through FastAPI dependencies

Swap:
- DATABASE_URL + USE_POSTGRES_CONTRACTS -> SQLAlchemy PostgresDB
- REDIS_URL -> redis-backed session cache
- INTEGRATIONS_MODE=real + SUPABASE_URL -> remote addon catalogue (static fallback kept)
- INTEGRATIONS_MODE=real + STRIPE_SECRET_KEY -> Stripe payment intents
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from palworks.checkout.flow import CheckoutFlow
from palworks.checkout.webhooks import StripeWebhookHandler
from palworks.controllers.contract_controller import ContractController
from palworks.integrations.clients.mocks.payments import MockPaymentsClient
from palworks.integrations.clients.mocks.static_addon_catalogue import StaticAddonCatalogueClient
from palworks.integrations.policy.addon_catalogue_service import AddonCatalogueService
from palworks.pricing.session import PricingSessionStore
from palworks.utils.config_loader import PricingConfig, get_pricing_config

logger = logging.getLogger(__name__)


@dataclass
class Services:
    config: PricingConfig
    db: object
    cache: object
    catalogue: AddonCatalogueService
    controller: ContractController
    checkout: CheckoutFlow
    webhooks: StripeWebhookHandler
    sessions: PricingSessionStore


def should_use_real_integrations() -> bool:
    mode = os.getenv("INTEGRATIONS_MODE", "").strip().lower()
    if mode in {"real", "live"}:
        return True
    if mode in {"mock", "test"}:
        return False
    return bool(os.getenv("SUPABASE_URL") or os.getenv("STRIPE_SECRET_KEY"))


def _select_db():
    if os.getenv("DATABASE_URL") and os.getenv("USE_POSTGRES_CONTRACTS", "").lower() in ("1", "true", "yes"):
        from palworks.database.postgres_real import PostgresDB

        return PostgresDB(connection_string=os.environ["DATABASE_URL"])

    from palworks.database.postgres import PostgresDB

    return PostgresDB()


def _select_cache():
    if os.getenv("REDIS_URL"):
        from palworks.database.redis_real import RedisCache

        return RedisCache(url=os.environ["REDIS_URL"])

    from palworks.database.redis import RedisCache

    return RedisCache()


def _select_catalogue() -> AddonCatalogueService:
    static = StaticAddonCatalogueClient()
    if should_use_real_integrations() and os.getenv("SUPABASE_URL"):
        from palworks.integrations.clients.real_http.supabase_addons import SupabaseAddonCatalogueClient

        logger.info("[Catalog] Using remote addon catalogue with static fallback")
        return AddonCatalogueService(SupabaseAddonCatalogueClient(), fallback=static)
    logger.info("[Catalog] Using static addon catalogue")
    return AddonCatalogueService(static)


def _select_payment_client():
    if should_use_real_integrations() and os.getenv("STRIPE_SECRET_KEY"):
        from palworks.integrations.clients.real_http.stripe_payments import StripePaymentsClient

        return StripePaymentsClient()
    return MockPaymentsClient()


def build_services(
    *,
    config: Optional[PricingConfig] = None,
    db=None,
    cache=None,
    catalogue: Optional[AddonCatalogueService] = None,
    payment_client=None,
    simulator=None,
    webhook_secret: Optional[str] = None,
) -> Services:
    config = config or get_pricing_config()
    db = db if db is not None else _select_db()
    cache = cache if cache is not None else _select_cache()
    catalogue = catalogue or _select_catalogue()
    checkout = CheckoutFlow(
        db,
        payment_client or _select_payment_client(),
        simulator=simulator or MockPaymentsClient(),
    )
    return Services(
        config=config,
        db=db,
        cache=cache,
        catalogue=catalogue,
        controller=ContractController(db, catalogue, config),
        checkout=checkout,
        webhooks=StripeWebhookHandler(checkout, secret=webhook_secret),
        sessions=PricingSessionStore(cache),
    )


_services: Optional[Services] = None


def get_services() -> Services:
    """FastAPI dependency; tests replace it through app.dependency_overrides."""
    global _services
    if _services is None:
        _services = build_services()
    return _services
