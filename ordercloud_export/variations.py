from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Tuple

from ordercloud_export.models import ItemVariation, SellableItem


class VariationPropertyKind(str, Enum):
    """Display properties that define a variant. Order is spec order."""

    COLOR = "Color"
    SIZE = "Size"


# Extending the variant-defining properties means adding a row here.
VARIATION_PROPERTY_TABLE: Dict[VariationPropertyKind, Callable[[ItemVariation], Optional[str]]] = {
    VariationPropertyKind.COLOR: lambda variation: variation.color,
    VariationPropertyKind.SIZE: lambda variation: variation.size,
}


@dataclass(frozen=True)
class VariationProperty:
    name: str
    value: str


@dataclass
class VariationSummary:
    """One source variation and its variant-defining property values."""

    id: str
    properties: List[VariationProperty] = field(default_factory=list)

    def property_set(self) -> FrozenSet[Tuple[str, str]]:
        return frozenset((p.name, p.value) for p in self.properties)


@dataclass
class VariationsSummary:
    """Distinct spec names across an item's variations, plus each variation."""

    variations: List[VariationSummary] = field(default_factory=list)
    unique_properties: List[str] = field(default_factory=list)

    def get_distinct_values(self, name: str) -> List[str]:
        values: List[str] = []
        for variation in self.variations:
            for prop in variation.properties:
                if prop.name == name and prop.value not in values:
                    values.append(prop.value)
        return values


def variation_properties(variation: ItemVariation) -> List[VariationProperty]:
    """Non-blank variant-defining properties of one variation."""
    props: List[VariationProperty] = []
    for kind, accessor in VARIATION_PROPERTY_TABLE.items():
        value = accessor(variation)
        if value is not None and value.strip():
            props.append(VariationProperty(kind.value, value))
    return props


def requires_variants(item: SellableItem) -> bool:
    """
    True when the item needs destination variants: more than one variation,
    or a single variation carrying a variant-defining property.
    """
    if item is None or not item.variations:
        return False
    if len(item.variations) > 1:
        return True
    return bool(variation_properties(item.variations[0]))


def will_fold_into_standalone_product(item: SellableItem) -> bool:
    """
    True when the item has exactly one variation with no variant-defining
    properties; that variation folds into the standalone product.
    """
    if item is None or not item.variations:
        return False
    if len(item.variations) > 1:
        return False
    return not variation_properties(item.variations[0])


def get_variations_summary(item: SellableItem) -> VariationsSummary:
    summary = VariationsSummary()
    if item is None:
        return summary

    for variation in item.variations:
        props = variation_properties(variation)
        if not props:
            continue
        for prop in props:
            if prop.name not in summary.unique_properties:
                summary.unique_properties.append(prop.name)
        summary.variations.append(VariationSummary(id=variation.id, properties=props))

    return summary


def variant_spec_pairs(variant: Dict[str, Any]) -> FrozenSet[Tuple[str, str]]:
    return frozenset(
        (spec.get("Name"), spec.get("Value")) for spec in variant.get("Specs") or []
    )


def get_variation_summary(
    summary: VariationsSummary, variant: Dict[str, Any]
) -> Optional[VariationSummary]:
    """
    Match a generated remote variant to the source variation with exactly the
    same spec name/value pairs. First match in source order wins; None means
    the variant has no source counterpart.
    """
    pairs = variant_spec_pairs(variant)
    for variation in summary.variations:
        if variation.property_set() == pairs:
            return variation
    return None
