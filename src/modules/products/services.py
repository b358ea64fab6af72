"""Product service layer (Use Cases).

Orchestrates business logic for the Product aggregate, delegating
persistence to the injected ``IProductRepository``.

Business rules enforced here:
- SKU must be unique.
- Prices and quantities are never negative (validated by DTO).
- A product saved without a supplier is assigned the first active
  supplier serving the same category.
- A product referenced by order items, purchases or outgoings cannot be
  deleted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.db import transaction

from modules.products.exceptions import (
    ProductAlreadyExists,
    ProductInUse,
    ProductNotFound,
)
from modules.products.models import Product
from modules.suppliers.exceptions import SupplierNotFound

if TYPE_CHECKING:
    from modules.products.dtos import CreateProductDTO, UpdateProductDTO
    from modules.products.repositories.interfaces import IProductRepository
    from modules.suppliers.repositories.interfaces import ISupplierRepository

logger = structlog.get_logger(__name__)

_UPDATABLE_FIELDS = (
    "name",
    "category",
    "description",
    "stock_quantity",
    "cost_price",
    "selling_price",
    "minimum_stock_level",
)

_REFERENCE_LABELS = {
    "order_items": "order item(s)",
    "purchases": "purchase(s)",
    "outgoings": "outgoing record(s)",
}


class ProductService:
    """Application service for Product use-cases.

    Receives an ``IProductRepository`` (and optionally an
    ``ISupplierRepository`` for supplier assignment) via constructor
    injection.
    """

    def __init__(
        self,
        repository: IProductRepository,
        supplier_repository: Optional[ISupplierRepository] = None,
    ) -> None:
        self._repo = repository
        self._supplier_repo = supplier_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_product(self, dto: CreateProductDTO) -> Product:
        """Create a new product after enforcing uniqueness rules.

        Raises:
            ProductAlreadyExists: if SKU is already taken.
            SupplierNotFound: if an explicit ``supplier_id`` does not exist.
        """
        log = logger.bind(sku=dto.sku)

        if self._repo.get_by_sku(dto.sku):
            log.warning("product.duplicate_sku")
            raise ProductAlreadyExists(f"SKU '{dto.sku}' already registered.")

        product = Product(
            sku=dto.sku,
            name=dto.name,
            category=dto.category,
            description=dto.description,
            stock_quantity=dto.stock_quantity,
            cost_price=dto.cost_price,
            selling_price=dto.selling_price,
            minimum_stock_level=dto.minimum_stock_level,
        )
        product.supplier = self._resolve_supplier(dto.supplier_id, dto.category)

        product = self._repo.save(product)
        log.info(
            "product.registered",
            product_id=str(product.id),
            supplier_id=str(product.supplier_id) if product.supplier_id else None,
        )
        return product

    @transaction.atomic
    def update_product(self, id: str, dto: UpdateProductDTO) -> Product:
        """Update an existing product with the supplied fields.

        The row is locked and its ``version`` bumped so an admin edit of
        ``stock_quantity`` cannot silently overwrite a concurrent stock
        adjustment.

        Raises:
            ProductNotFound: if the product does not exist.
            SupplierNotFound: if an explicit ``supplier_id`` does not exist.
        """
        product = self._repo.get_for_update(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")

        log = logger.bind(product_id=str(id))

        for field in _UPDATABLE_FIELDS:
            value = getattr(dto, field)
            if value is not None:
                setattr(product, field, value)

        if dto.supplier_id is not None or product.supplier_id is None:
            supplier = self._resolve_supplier(dto.supplier_id, product.category)
            if supplier is not None:
                product.supplier = supplier

        product.version += 1
        product = self._repo.save(product)
        log.info("product.updated", version=product.version)
        return product

    @transaction.atomic
    def delete_product(self, id: str) -> None:
        """Delete a product that nothing references.

        Raises:
            ProductNotFound: if the product does not exist.
            ProductInUse: if order items, purchases or outgoings point at it.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")

        references = self._repo.count_references(id)
        in_use = {kind: count for kind, count in references.items() if count}
        if in_use:
            details = ", ".join(
                f"{count} {_REFERENCE_LABELS[kind]}" for kind, count in in_use.items()
            )
            logger.warning("product.delete_blocked", product_id=str(id), **in_use)
            raise ProductInUse(
                f"Cannot delete product '{product.name}' because it is referenced "
                f"by {details}.",
                references=references,
            )

        self._repo.delete(id)
        logger.info("product.removed", product_id=str(id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_products(self, filters: Optional[Dict[str, Any]] = None):
        """Return products, optionally filtered."""
        return self._repo.list(filters)

    def get_product(self, id: str) -> Product:
        """Retrieve a single product by ID.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product

    def low_stock_products(self):
        return self._repo.low_stock()

    def price_quote(self, id: str) -> Dict[str, Any]:
        """Current selling price and stock, used to pre-fill order lines."""
        product = self.get_product(id)
        return {
            "product_id": product.id,
            "price": product.selling_price,
            "stock": product.stock_quantity,
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve_supplier(self, supplier_id, category: str):
        if self._supplier_repo is None:
            return None
        if supplier_id is not None:
            supplier = self._supplier_repo.get_by_id(str(supplier_id))
            if not supplier:
                raise SupplierNotFound(f"Supplier {supplier_id} not found.")
            return supplier
        if not category:
            return None
        return self._supplier_repo.first_active_for_category(category)
