# silkthread/repositories/catalog_repo.py
from typing import Any

from supabase import Client

from silkthread.schemas.cart import ProductRef

PRODUCT_SELECT = """
    *,
    category:categories(id, name, slug),
    product_type:product_types(id, name, slug)
"""


class CatalogRepository:
    """
    Read-only access to the product catalog in Supabase.

    - Only what the cart needs: one product with its category/type.
    - Admin CRUD on the catalog lives in the storefront, not here.
    """

    def __init__(self, client: Client):
        self.client = client

    def get_product(self, product_id: str) -> ProductRef | None:
        response = (
            self.client.table("products")
            .select(PRODUCT_SELECT)
            .eq("id", product_id)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        if not rows:
            return None
        return self.to_product_ref(rows[0])

    @staticmethod
    def to_product_ref(row: dict[str, Any]) -> ProductRef:
        """
        Map a `products` row onto the cart's product contract.

        Column names differ from the cart's:
          - name        -> title
          - mrp_price   -> price
          - offer_price -> sale_price
        """
        return ProductRef.model_validate(
            {
                "id": row["id"],
                "title": row.get("name") or "",
                "price": row.get("mrp_price") or 0,
                "sale_price": row.get("offer_price"),
                "images": row.get("images") or [],
                "category": row.get("category"),
                "product_type": row.get("product_type"),
                "options": row.get("options") or [],
                "status": row.get("status") or "active",
            }
        )
