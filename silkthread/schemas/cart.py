# silkthread/schemas/cart.py
from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class NamedRef(SQLModel):
    """
    Nested catalog reference (category / product type).
    Only `name` is snapshotted into the cart.
    """

    id: str | None = None
    name: str
    slug: str | None = None


class OptionVariant(SQLModel):
    """
    One selectable value of a product option, e.g. Size -> "M".
    Variant prices are optional; 0 / missing means "use base price".
    """

    name: str
    price: float | None = None
    sale_price: float | None = None

    @field_validator("price", "sale_price", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        # Admin forms store prices as strings, sometimes empty.
        if v == "" or v is None:
            return None
        return v


class ProductOption(SQLModel):
    name: str
    variants: list[OptionVariant] = []


class ProductRef(SQLModel):
    """
    Product reference handed to the cart.

    This is the input contract for add_to_cart: required id/title/price,
    everything else optional. Catalog rows are mapped onto it by
    CatalogRepository.
    """

    id: str = Field(min_length=1)
    title: str = ""
    price: float = Field(default=0, ge=0)
    sale_price: float | None = Field(default=None, ge=0)
    images: list[str] = []
    category: NamedRef | None = None
    product_type: NamedRef | None = None
    options: list[ProductOption] = []
    status: str = "active"

    @field_validator("id", mode="before")
    @classmethod
    def id_to_str(cls, v):
        if v is None:
            return v
        v = str(v).strip()
        return v

    @property
    def is_active(self) -> bool:
        return self.status == "active"


class CartLine(SQLModel):
    """
    One line of the cart: a product + variant combination and its quantity.

    Everything except `quantity` is a snapshot taken when the line was
    created and is never re-synced with the catalog.
    """

    model_config = ConfigDict(extra="forbid")

    id: str
    product_id: str
    title: str
    price: float
    image: str = ""
    quantity: int = Field(ge=1)
    category: str | None = None
    product_type: str | None = None
    selected_options: dict[str, str] = {}

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class CartItemCreate(SQLModel):
    """
    Payload for adding to cart.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: str = Field(min_length=1)
    quantity: int = Field(default=1, gt=0)
    options: dict[str, str] = {}


class CartItemUpdate(SQLModel):
    """
    Payload for updating quantity of a cart line.

    Not constrained here: quantities < 1 are rejected by the cart itself
    so the error message is the same for every caller.
    """

    model_config = ConfigDict(extra="forbid")

    quantity: int


class DrawerUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    is_open: bool


class CartLineRead(SQLModel):
    """
    Read model for a single cart line, including line_total.
    """

    id: str
    product_id: str
    title: str
    price: float
    image: str
    quantity: int
    category: str | None = None
    product_type: str | None = None
    selected_options: dict[str, str]
    line_total: float


class CartSummary(SQLModel):
    """
    Full cart response model with totals.
    """

    items: list[CartLineRead]
    cart_count: int
    cart_total: float
    is_cart_open: bool = False
    is_persistent: bool = True
