from decimal import Decimal

import pytest
from pydantic import ValidationError

from palworks.utils.config_loader import UnknownContractTypeError, load_pricing_config


def test_default_base_prices(pricing_config):
    assert pricing_config.currency == "EUR"
    assert pricing_config.base_price("untermietvertrag") == Decimal("12.90")
    assert pricing_config.base_price("garage") == Decimal("7.90")
    assert pricing_config.base_price("wg") == Decimal("9.90")


@pytest.mark.parametrize(
    "name,expected",
    [("garage", "garage"), ("Garagenvertrag", "garage"), (" WG ", "wg"), ("wg-untermietvertrag", "wg")],
)
def test_aliases_resolve_to_canonical_type(pricing_config, name, expected):
    assert pricing_config.resolve_contract_type(name) == expected


def test_unknown_type(pricing_config):
    with pytest.raises(UnknownContractTypeError) as exc:
        pricing_config.resolve_contract_type("hausboot")
    assert exc.value.contract_type == "hausboot"


def test_negative_base_price_is_rejected(tmp_path):
    path = tmp_path / "pricing.yml"
    path.write_text("contract_types:\n  garage:\n    display_name: Garage\n    base_price: '-1'\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_pricing_config(path)


def test_empty_contract_types_are_rejected(tmp_path):
    path = tmp_path / "pricing.yml"
    path.write_text("contract_types: {}\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_pricing_config(path)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_pricing_config(tmp_path / "nope.yml")
