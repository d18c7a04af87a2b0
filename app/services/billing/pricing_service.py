# app/services/billing/pricing_service.py
"""
Window pricing model.

Pure functions only: nothing here touches the database, the clock or any
module-level state, so every result is a function of its arguments and can
be memoised by input value.
"""

from dataclasses import dataclass
from typing import Iterable

from app.constants.window_catalog import (
    WINDOW_TYPES,
    frame_multiplier,
    glass_surcharge,
    resolve_window_type,
)

# 1 sq.ft = 304.8 mm x 304.8 mm = 92,903.04 mm²
MM2_PER_SQFT = 92903
WEIGHT_KG_PER_SQFT = 15


@dataclass(frozen=True)
class PricedSpecification:
    area_sqft: float = 0.0
    adjusted_base_price: float = 0.0
    adjusted_sqft_price: float = 0.0
    unit_price: float = 0.0
    total_price: float = 0.0
    weight_kg: float = 0.0


@dataclass(frozen=True)
class QuotationTotals:
    component_count: int = 0
    total_area_sqft: float = 0.0
    subtotal: float = 0.0
    transport_cost: float = 0.0
    taxable_amount: float = 0.0
    gst_rate: float = 0.0
    gst_amount: float = 0.0
    grand_total: float = 0.0


def area_sqft(width_mm: float, height_mm: float) -> float:
    if width_mm <= 0 or height_mm <= 0:
        return 0.0
    return (width_mm * height_mm) / MM2_PER_SQFT


def price_specification(spec) -> PricedSpecification:
    """
    Derive area, adjusted prices, total and weight for one window.

    Area and weight depend on width and height alone. A unit with no usable
    width or height contributes nothing: every derived field is zero. A
    quantity of 0 keeps area, weight and unit price but totals to 0. Unknown
    frame materials and glass options price neutrally (multiplier 1.0,
    surcharge 0).
    """
    width = spec.dimensions.width
    height = spec.dimensions.height
    quantity = spec.pricing.quantity

    if width <= 0 or height <= 0:
        return PricedSpecification()

    area = area_sqft(width, height)
    adjusted_base = spec.pricing.base_price * frame_multiplier(spec.specifications.frame.material)
    adjusted_sqft = spec.pricing.sqft_price + glass_surcharge(spec.specifications.glass)
    unit_price = adjusted_base + area * adjusted_sqft

    return PricedSpecification(
        area_sqft=area,
        adjusted_base_price=adjusted_base,
        adjusted_sqft_price=adjusted_sqft,
        unit_price=unit_price,
        total_price=unit_price * quantity,
        weight_kg=area * WEIGHT_KG_PER_SQFT,
    )


def aggregate_totals(specs: Iterable, transport_cost: float, gst_rate: float) -> QuotationTotals:
    """
    Roll priced windows up into quotation totals.

    GST is charged on subtotal + transport, not on the subtotal alone.
    An empty quotation has nothing to deliver, so it carries no transport
    charge and every total is zero.
    """
    priced = [price_specification(spec) for spec in specs]
    if not priced:
        return QuotationTotals(gst_rate=gst_rate)

    subtotal = sum(p.total_price for p in priced)
    taxable = subtotal + transport_cost
    gst = taxable * gst_rate

    return QuotationTotals(
        component_count=len(priced),
        total_area_sqft=sum(p.area_sqft for p in priced),
        subtotal=subtotal,
        transport_cost=transport_cost,
        taxable_amount=taxable,
        gst_rate=gst_rate,
        gst_amount=gst,
        grand_total=subtotal + transport_cost + gst,
    )


def apply_window_type_defaults(spec, window_type: str):
    """Return a copy of ``spec`` switched to ``window_type`` with that type's default layout."""
    key = resolve_window_type(window_type)
    if key is None:
        return spec.model_copy(update={"type": window_type})

    defaults = WINDOW_TYPES[key]["default_specs"]
    options = spec.specifications.model_copy(
        update={
            "opening_type": defaults["opening_type"],
            "panels": defaults["panels"],
            "tracks": defaults["tracks"],
            "fixed_panels": list(defaults["fixed_panels"]),
        }
    )
    return spec.model_copy(update={"type": key, "specifications": options})


def assign_spec_ids(specs: list) -> list:
    """Give blank or repeated ids the next free W<n> so ids stay unique within the list."""
    taken = {s.id for s in specs if s.id}
    seen = set()
    result = []
    counter = 0
    for spec in specs:
        if spec.id and spec.id not in seen:
            seen.add(spec.id)
            result.append(spec)
            continue
        counter += 1
        candidate = f"W{counter}"
        while candidate in taken:
            counter += 1
            candidate = f"W{counter}"
        taken.add(candidate)
        result.append(spec.model_copy(update={"id": candidate}))
    return result
