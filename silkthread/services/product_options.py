# silkthread/services/product_options.py
"""
Variant selection rules from the product page.

- The displayed / charged price follows the selected variants.
- Every option must be picked before adding to cart, except that
  "Adult Size" and "Kids Size" are alternatives: one of them is enough.
"""
from typing import Mapping

from silkthread.schemas.cart import ProductRef

ADULT_SIZE = "Adult Size"
KIDS_SIZE = "Kids Size"
SIZE_OPTIONS = (ADULT_SIZE, KIDS_SIZE)


def resolve_variant_price(
    product: ProductRef,
    selected: Mapping[str, str],
) -> tuple[float, float]:
    """
    Return (list_price, offer_price) for the selected variants.

    The selected variant with the highest list price decides both prices
    (e.g. Size carries a price while Color doesn't). A variant without a
    sale price is offered at its list price. Without any priced variant the
    product's own prices apply.
    """
    max_price = 0.0
    offer = 0.0

    for option in product.options:
        chosen = selected.get(option.name)
        if chosen is None:
            continue
        variant = next((v for v in option.variants if v.name == chosen), None)
        if variant is None:
            continue
        var_price = variant.price or 0.0
        var_offer = variant.sale_price or var_price
        if var_price > max_price:
            max_price = var_price
            offer = var_offer

    if max_price > 0:
        return max_price, offer

    base_offer = product.sale_price or product.price
    return product.price, base_offer


def missing_options(product: ProductRef, selected: Mapping[str, str]) -> list[str]:
    """
    Names of options the shopper still has to pick.
    """
    names = [o.name for o in product.options]
    missing = [n for n in names if n not in SIZE_OPTIONS and not selected.get(n)]

    sizes = [n for n in SIZE_OPTIONS if n in names]
    if sizes and not any(selected.get(n) for n in sizes):
        # both present -> either one will do
        missing.append(" or ".join(sizes))

    return missing
