import sqlite3

from conftest import BrokenCatalog

from jewel_pricing.models import GemInput, PricingRequest
from jewel_pricing.pricing import PriceEngine, PricingConfig


def _request(product_type="Ring", metal_type="18k Gold", weight=10.0, gems=()):
    return PricingRequest(
        product_type=product_type,
        metal_type=metal_type,
        metal_weight_grams=weight,
        primary_gems=tuple(gems),
    )


def test_ring_in_eighteen_karat(engine):
    estimate = engine.quick_estimate(_request())
    # 10 g x 64 USD, plus 30% craftsmanship
    assert estimate.price_usd == 832
    assert estimate.price_inr == 69470


def test_necklace_with_diamond(engine):
    estimate = engine.quick_estimate(_request("Diamond Necklace", gems=[GemInput("Diamond", 1)]))
    assert estimate.price_usd == 6997
    assert estimate.price_inr == 584220


def test_product_type_multiplier(engine):
    assert engine.quick_estimate(_request("Stud Earrings")).price_usd == 915


def test_minimum_price_floor(engine):
    estimate = engine.quick_estimate(_request(metal_type="Commercial Metal", weight=1))
    assert estimate.price_usd == 100
    assert estimate.price_inr == 8350


def test_gem_carats_default_to_half(engine):
    estimate = engine.quick_estimate(_request(metal_type="Commercial Metal", weight=1, gems=[GemInput("Ruby")]))
    assert estimate.price_usd == 780


def test_quick_rate_is_configurable(catalog, feed):
    engine = PriceEngine(catalog, feed, PricingConfig(quick_estimate_usd_inr_rate=80))
    assert engine.quick_estimate(_request()).price_inr == 66560


def test_does_not_touch_catalog_or_feed(feed, gold_provider, rate_provider):
    engine = PriceEngine(BrokenCatalog(sqlite3.OperationalError("no such table")), feed)
    estimate = engine.quick_estimate(_request())

    assert estimate.price_usd == 832
    assert gold_provider.calls == 0
    assert rate_provider.calls == 0


def test_settings_feed_pricing_config():
    config = PricingConfig.from_settings({"quick_estimate_usd_inr_rate": 82.0, "default_usd_inr_rate": 84.0})
    assert config.quick_estimate_usd_inr_rate == 82.0
    assert config.emergency_exchange_rate == 84.0
    assert config.emergency_price_inr == 95000
