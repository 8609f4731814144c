# File: dispatch_tracker/services/sku_service.py

import logging
from enum import Enum
from typing import Callable, Dict, Iterable, Optional, Tuple

from dispatch_tracker.schemas.order import SkuReference

logger = logging.getLogger(__name__)


class OilType(str, Enum):
    """Oil-type categories inferred from SKU names."""

    SOYA = "Soya Oil"
    RICE_BRAN = "Rice Bran Oil"
    PALM = "Palm Oil"


UNKNOWN_OIL_TYPE = "Unknown"


def _token(code: str) -> Callable[[str], bool]:
    """Match ``code`` as a leading or space-separated token prefix."""
    return lambda name: name.startswith(code) or f" {code}" in name


def _contains(*fragments: str) -> Callable[[str], bool]:
    return lambda name: any(fragment in name for fragment in fragments)


# Checked in order against the uppercased SKU name; first match wins
OIL_TYPE_RULES: Tuple[Tuple[Callable[[str], bool], OilType], ...] = (
    (_token("SBO"), OilType.SOYA),
    (_token("RBO"), OilType.RICE_BRAN),
    (lambda name: "PALM OIL" in name or _token("PALM")(name), OilType.PALM),
    (_contains("SOYA"), OilType.SOYA),
    (_contains("RICE", "RBO"), OilType.RICE_BRAN),
)


def derive_oil_type(oil_type: Optional[str], sku_name: Optional[str]) -> Optional[str]:
    """
    Normalize an order's oil type, inferring it from the SKU name if needed.

    An explicit value always wins unless it is blank or "unknown". The
    inference is a best-effort heuristic on SKU naming conventions; when no
    rule matches the raw value is returned unchanged (None when blank).

    Args:
        oil_type: Oil type recorded on the order, possibly None
        sku_name: SKU or product name

    Returns:
        Oil type label, or the raw value when nothing can be inferred
    """
    if oil_type and oil_type.strip() and oil_type.strip().lower() != "unknown":
        return oil_type.strip()

    name = (sku_name or "").upper()
    for matches, derived in OIL_TYPE_RULES:
        if matches(name):
            return derived.value
    return oil_type if oil_type and oil_type.strip() else None


def normalize_sku_key(sku_name: Optional[str]) -> str:
    return (sku_name or "").upper().strip()


class SkuCatalog:
    """
    SKU reference lookup for kilogram conversion.

    Lookups are case-insensitive and ignore surrounding whitespace. When a
    name appears more than once the first reference wins.
    """

    def __init__(self, references: Iterable[SkuReference] = ()):
        self._by_key: Dict[str, SkuReference] = {}
        for reference in references:
            key = reference.lookup_key
            if not key:
                continue
            if key in self._by_key:
                logger.debug(f"Duplicate SKU reference for '{key}' ignored")
                continue
            self._by_key[key] = reference

    def __len__(self) -> int:
        return len(self._by_key)

    def get(self, sku_name: Optional[str]) -> Optional[SkuReference]:
        return self._by_key.get(normalize_sku_key(sku_name))

    def weight_for(self, sku_name: Optional[str]) -> float:
        """Unit weight in kg, or 0 when the SKU is unknown or has no positive weight."""
        reference = self.get(sku_name)
        if reference is None or not reference.sku_weight or reference.sku_weight <= 0:
            return 0.0
        return reference.sku_weight

    def to_kg(self, quantity: Optional[float], sku_name: Optional[str]) -> float:
        """
        Convert a unit count to kilograms.

        Quantities of SKUs without a known weight are assumed to already be
        in kilograms.
        """
        raw = quantity or 0.0
        weight = self.weight_for(sku_name)
        return raw * weight if weight > 0 else raw
