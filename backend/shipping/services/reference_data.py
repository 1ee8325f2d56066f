"""
Reference data snapshots for the shipping engine.

Loads locations, shipping methods and shipping configurations from a JSON
document, validates them and builds the immutable snapshots the resolver
works on. The document looks like:

    {
      "version": "1.0",
      "locations": [{"id": 1, "name": "Everywhere", "parent": null, "kind": "everywhere"}],
      "methods": [{"id": 1, "name": "Post"}],
      "shippings": [{
        "id": 1, "currency": "GBP", "processing_time": [3, 5], "ships_from": 1,
        "groups": [{
          "id": 1, "method": 1, "locations": [1],
          "price": {"amount": "10.00", "currency": "GBP"},
          "additional_item_price": {"amount": "5.00", "currency": "GBP"},
          "delivery_time": [7, 14]
        }]
      }]
    }
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .. import conf
from ..dataclasses import DeliveryTimeRange, Location, Money, Shipping, ShippingGroup, ShippingMethod
from ..exceptions import ConfigurationError, ValidationError
from .locations import LocationHierarchy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferenceData:
    hierarchy: LocationHierarchy
    methods: Dict[int, ShippingMethod]
    shippings: Dict[int, Shipping]

    def location(self, name: str) -> Location:
        return self.hierarchy.find(name)

    def method(self, method_id: int) -> ShippingMethod:
        try:
            return self.methods[method_id]
        except KeyError:
            raise ConfigurationError(f"Unknown shipping method: {method_id}")

    def shipping(self, shipping_id: int) -> Shipping:
        try:
            return self.shippings[shipping_id]
        except KeyError:
            raise ConfigurationError(f"Unknown shipping configuration: {shipping_id}")


def load_reference_data(config_path: str = None) -> dict:
    """
    Load reference data from a JSON file

    Args:
        config_path: Path to the JSON file. If None, uses the configured path
            or the file shipped with this package.

    Returns:
        dict: Parsed reference data document

    Raises:
        ConfigurationError: If the file cannot be loaded or parsed
    """
    if config_path is None:
        config_path = conf.reference_data_path()
    if config_path is None:
        config_path = Path(__file__).parent.parent / "config" / "reference_data.json"

    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigurationError(f"Reference data file not found: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in reference data file: {e}")
    except OSError as e:
        raise ConfigurationError(f"Error loading reference data: {e}")

    logger.info(f"Loaded reference data from {config_path}")
    return raw


def validate_reference_data(raw: dict) -> List[str]:
    """
    Check that a reference data document is complete and consistent

    Returns:
        List[str]: Validation errors (empty if valid)
    """
    errors = []

    for key in ('version', 'locations', 'methods', 'shippings'):
        if key not in raw:
            errors.append(f"Missing required top-level key: {key}")
    if errors:
        return errors

    location_ids = set()
    for entry in raw['locations']:
        if 'id' not in entry or 'name' not in entry:
            errors.append(f"Location entry needs id and name: {entry}")
            continue
        if entry['id'] in location_ids:
            errors.append(f"Duplicate location id: {entry['id']}")
        location_ids.add(entry['id'])

    for entry in raw['locations']:
        parent = entry.get('parent')
        if parent is not None and parent not in location_ids:
            errors.append(f"Location {entry.get('name')!r} references unknown parent {parent}")

    method_ids = {entry.get('id') for entry in raw['methods']}

    group_ids = set()
    for shipping in raw['shippings']:
        label = f"shipping {shipping.get('id')}"
        errors.extend(_validate_range(shipping.get('processing_time', [0, 0]), f"{label} processing_time"))

        ships_from = shipping.get('ships_from')
        if ships_from is not None and ships_from not in location_ids:
            errors.append(f"Unknown ships_from location {ships_from} in {label}")

        for group in shipping.get('groups', []):
            group_label = f"group {group.get('id')} of {label}"
            if group.get('id') in group_ids:
                errors.append(f"Duplicate group id: {group.get('id')}")
            group_ids.add(group.get('id'))

            if group.get('method') not in method_ids:
                errors.append(f"Unknown method {group.get('method')} in {group_label}")
            if not group.get('locations'):
                errors.append(f"No locations bound in {group_label}")
            for location_id in group.get('locations', []):
                if location_id not in location_ids:
                    errors.append(f"Unknown location {location_id} in {group_label}")

            for price_key in ('price', 'additional_item_price'):
                price = group.get(price_key)
                if price is None:
                    if price_key == 'price':
                        errors.append(f"Missing price in {group_label}")
                    continue
                if not isinstance(price, dict) or 'amount' not in price or 'currency' not in price:
                    errors.append(f"{price_key} must have amount and currency in {group_label}")

            errors.extend(_validate_range(group.get('delivery_time'), f"{group_label} delivery_time"))

    if not errors:
        logger.info("Reference data validation passed")
    else:
        logger.warning(f"Reference data validation found {len(errors)} errors")

    return errors


def _validate_range(value: Any, label: str) -> List[str]:
    if not isinstance(value, list) or len(value) != 2:
        return [f"{label} must be a [min, max] pair"]
    low, high = value
    if not all(isinstance(v, int) and v >= 0 for v in value):
        return [f"{label} must hold non-negative whole days"]
    if low > high:
        return [f"{label} has min greater than max"]
    return []


def _money(raw: Optional[dict]) -> Optional[Money]:
    if raw is None:
        return None
    return Money(raw['amount'], raw['currency'])


def build_reference_data(raw: dict) -> ReferenceData:
    """Build immutable snapshots from a validated reference data document."""
    hierarchy = LocationHierarchy(
        Location(
            id=entry['id'],
            name=entry['name'],
            parent_id=entry.get('parent'),
            kind=entry.get('kind', 'country'),
        )
        for entry in raw['locations']
    )
    methods = {entry['id']: ShippingMethod(id=entry['id'], name=entry['name']) for entry in raw['methods']}

    shippings: Dict[int, Shipping] = {}
    for entry in raw['shippings']:
        groups = tuple(
            ShippingGroup(
                id=group['id'],
                method=methods[group['method']],
                locations=tuple(hierarchy.get(location_id) for location_id in group['locations']),
                price=_money(group['price']),
                delivery_time=DeliveryTimeRange(*group['delivery_time']),
                additional_item_price=_money(group.get('additional_item_price')),
            )
            for group in entry.get('groups', [])
        )
        ships_from = entry.get('ships_from')
        shippings[entry['id']] = Shipping(
            id=entry['id'],
            groups=groups,
            processing_time=DeliveryTimeRange(*entry.get('processing_time', [0, 0])),
            ships_from=hierarchy.get(ships_from) if ships_from is not None else None,
            currency=entry.get('currency', conf.reference_currency()),
        )

    logger.debug(f"Built {len(shippings)} shipping configurations over {len(hierarchy)} locations")
    return ReferenceData(hierarchy=hierarchy, methods=methods, shippings=shippings)


# Convenience functions for common operations

def get_reference_data_instance() -> ReferenceData:
    """Get a cached, validated instance of the configured reference data"""
    if not hasattr(get_reference_data_instance, '_cached'):
        raw = load_reference_data()

        validation_errors = validate_reference_data(raw)
        if validation_errors:
            logger.error(f"Reference data validation failed: {validation_errors}")
            raise ValidationError(f"Reference data validation failed: {validation_errors}")

        get_reference_data_instance._cached = build_reference_data(raw)

    return get_reference_data_instance._cached


def clear_reference_data_cache():
    """Clear the cached reference data (useful for testing or config updates)"""
    if hasattr(get_reference_data_instance, '_cached'):
        delattr(get_reference_data_instance, '_cached')
    logger.info("Reference data cache cleared")
