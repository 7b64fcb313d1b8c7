# silkthread/services/cart_lines.py
"""
Pure state transitions over an ordered list of CartLine.

Every function takes the current lines and returns a new list; inputs are
never mutated, so the engine can replay operations safely.
"""
import json
from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError

from silkthread.core.errors import ValidationError
from silkthread.schemas.cart import CartLine, ProductRef


def canonical_options(options: Mapping[str, str] | None) -> str:
    """
    Serialize selected options with sorted keys.

    {"size": "M", "color": "red"} -> '{"color":"red","size":"M"}'
    """
    return json.dumps(
        dict(options or {}),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def line_id_for(product_id: str, options: Mapping[str, str] | None) -> str:
    return f"{product_id}-{canonical_options(options)}"


def coerce_product(product: ProductRef | Mapping[str, Any]) -> ProductRef:
    """
    Validate a product reference at the cart boundary.

    Raises:
        ValidationError: if the product has no usable id or bad prices.
    """
    if isinstance(product, ProductRef):
        return product
    try:
        return ProductRef.model_validate(product)
    except PydanticValidationError as e:
        fields = {str(err["loc"][0]) for err in e.errors() if err["loc"]}
        if "id" in fields:
            raise ValidationError("product.id", "product id is required") from e
        raise ValidationError("product", f"invalid product: {e}") from e


def effective_price(product: ProductRef, price_override: float | None = None) -> float:
    """
    Unit price snapshotted into a new line.

    Priority: explicit override, then a sale price lower than the list
    price, then the list price.
    """
    if price_override is not None:
        return price_override
    if product.sale_price is not None and product.sale_price < product.price:
        return product.sale_price
    return product.price


def _check_quantity(quantity: Any) -> None:
    # bool is an int subclass; True is not a quantity.
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
        raise ValidationError("quantity>=1", f"quantity must be a positive integer, got {quantity!r}")


def add_line(
    lines: list[CartLine],
    product: ProductRef | Mapping[str, Any],
    quantity: int,
    options: Mapping[str, str] | None = None,
    price_override: float | None = None,
) -> tuple[list[CartLine], str]:
    """
    Add `quantity` units of a product variant.

    Returns the new lines and the id of the line that was created or
    merged into.
    """
    _check_quantity(quantity)
    if price_override is not None and price_override < 0:
        raise ValidationError("price_override>=0", "price override cannot be negative")
    ref = coerce_product(product)
    selected = {str(k): str(v) for k, v in (options or {}).items()}
    line_id = line_id_for(ref.id, selected)

    new_lines = list(lines)
    for idx, line in enumerate(new_lines):
        if line.id == line_id:
            new_lines[idx] = line.model_copy(update={"quantity": line.quantity + quantity})
            return new_lines, line_id

    new_lines.append(
        CartLine(
            id=line_id,
            product_id=ref.id,
            title=ref.title,
            price=effective_price(ref, price_override),
            image=ref.images[0] if ref.images else "",
            quantity=quantity,
            category=ref.category.name if ref.category else None,
            product_type=ref.product_type.name if ref.product_type else None,
            selected_options=selected,
        )
    )
    return new_lines, line_id


def remove_line(lines: list[CartLine], line_id: str) -> list[CartLine]:
    return [line for line in lines if line.id != line_id]


def set_quantity(lines: list[CartLine], line_id: str, quantity: int) -> list[CartLine]:
    """
    Replace the quantity of one line.

    Raises:
        ValidationError: quantity < 1 (the line is never removed this way).
    """
    _check_quantity(quantity)
    return [
        line.model_copy(update={"quantity": quantity}) if line.id == line_id else line
        for line in lines
    ]


def cart_count(lines: list[CartLine]) -> int:
    return sum(line.quantity for line in lines)


def cart_total(lines: list[CartLine]) -> float:
    return sum(line.price * line.quantity for line in lines)


# ----- Serialization -----


def dump_lines(lines: list[CartLine]) -> str:
    return json.dumps([line.model_dump() for line in lines], ensure_ascii=False)


def parse_lines(payload: str | None) -> list[CartLine]:
    """
    Parse a persisted cart.

    Raises:
        ValueError: payload is not a JSON array of valid cart lines.
    """
    if not payload:
        return []
    data = json.loads(payload)
    if not isinstance(data, list):
        raise ValueError("persisted cart is not a list")

    lines: list[CartLine] = []
    seen: set[str] = set()
    for raw in data:
        line = CartLine.model_validate(raw)
        if line.id in seen:
            raise ValueError(f"duplicate cart line id {line.id!r}")
        seen.add(line.id)
        lines.append(line)
    return lines
