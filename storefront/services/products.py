# storefront/services/products.py
"""
Product catalog operations.

- create / update / soft delete (sku, slug unique; category must exist)
- list with filters, search, featured, by category
- stock update
- images: the first image of a product becomes primary, and there is always
  at most one primary image per product
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from storefront.core.errors import (
    CategoryNotFound,
    Conflict,
    ProductImageNotFound,
    ProductNotFound,
    ValidationFailed,
)
from storefront.models.enums import ProductStatus
from storefront.models.product import Product, ProductImage
from storefront.repositories.categories import CategoryRepository
from storefront.repositories.products import ProductFilter, ProductImageRepository, ProductRepository
from storefront.utils.codes import slugify

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2

# null 로 지울 수 있는 필드
NULLABLE_FIELDS = {"description", "compare_price", "cost_price", "brand"}


class ProductService:
    def __init__(
        self,
        db: Session,
        products: ProductRepository,
        images: ProductImageRepository,
        categories: CategoryRepository,
    ):
        self.db = db
        self.products = products
        self.images = images
        self.categories = categories

    def _get(self, product_id: int) -> Product:
        product = self.products.find_by_id(product_id)
        if not product:
            raise ProductNotFound()
        return product

    def _check_category(self, category_id: int) -> None:
        if not self.categories.find_by_id(category_id):
            raise CategoryNotFound()

    def _check_unique(self, sku: Optional[str], slug: Optional[str], exclude_id: Optional[int] = None) -> None:
        if sku is not None and self.products.sku_exists(sku, exclude_id=exclude_id):
            raise Conflict("Product with this SKU already exists", code="PRODUCT_SKU_EXISTS")
        if slug is not None and self.products.slug_exists(slug, exclude_id=exclude_id):
            raise Conflict("Product with this slug already exists", code="PRODUCT_SLUG_EXISTS")

    # ---------- CRUD ----------
    def create(self, created_by: Optional[int] = None, **data) -> Product:
        self._check_category(data["category_id"])

        slug = slugify(data["name"])
        if not slug:
            raise ValidationFailed("Product name must contain letters or digits")
        self._check_unique(data["sku"], slug)

        product = self.products.create(**data, slug=slug, created_by=created_by)
        self.db.commit()
        logger.info("product_id=%s created sku=%s", product.id, product.sku)
        return product

    def get(self, product_id: int) -> Product:
        return self._get(product_id)

    def get_by_slug(self, slug: str) -> Product:
        product = self.products.find_by_slug(slug)
        if not product:
            raise ProductNotFound()
        return product

    def update(self, product_id: int, **fields) -> Product:
        product = self._get(product_id)
        fields = {k: v for k, v in fields.items() if v is not None or k in NULLABLE_FIELDS}

        if fields.get("category_id") is not None and fields["category_id"] != product.category_id:
            self._check_category(fields["category_id"])

        sku = fields.get("sku")
        slug = None
        if fields.get("name") is not None and fields["name"] != product.name:
            slug = slugify(fields["name"])
            if not slug:
                raise ValidationFailed("Product name must contain letters or digits")
            fields["slug"] = slug
        self._check_unique(sku if sku != product.sku else None, slug, exclude_id=product.id)

        product = self.products.update(product, **fields)
        self.db.commit()
        return product

    def update_stock(self, product_id: int, quantity: int) -> Product:
        if quantity < 0:
            raise ValidationFailed("Stock quantity cannot be negative")
        product = self.products.update(self._get(product_id), stock_quantity=quantity)
        self.db.commit()
        return product

    def delete(self, product_id: int) -> None:
        product = self._get(product_id)
        self.products.soft_delete(product)
        self.db.commit()
        logger.info("product_id=%s soft deleted", product.id)

    # ---------- listing ----------
    def list(self, filters: ProductFilter, page: int = 1, limit: int = 20) -> Tuple[List[Product], int]:
        return self.products.list(filters, page=page, limit=limit)

    def list_active(self, filters: ProductFilter, page: int = 1, limit: int = 20) -> Tuple[List[Product], int]:
        filters.status = ProductStatus.ACTIVE
        return self.products.list(filters, page=page, limit=limit)

    def search(self, query: str, filters: ProductFilter, page: int = 1, limit: int = 20) -> Tuple[List[Product], int]:
        query = (query or "").strip()
        if len(query) < MIN_SEARCH_LENGTH:
            raise ValidationFailed(
                "Search query must be at least 2 characters long",
                code="INVALID_SEARCH_QUERY",
            )
        filters.q = query
        return self.products.list(filters, page=page, limit=limit)

    def featured(self, limit: int = 10) -> List[Product]:
        rows, _ = self.products.list(
            ProductFilter(status=ProductStatus.ACTIVE, is_featured=True),
            page=1,
            limit=limit,
        )
        return list(rows)

    def by_category(self, category_id: int, page: int = 1, limit: int = 20) -> Tuple[List[Product], int]:
        self._check_category(category_id)
        return self.products.list(ProductFilter(category_id=category_id), page=page, limit=limit)

    # ---------- images ----------
    def add_image(
        self,
        product_id: int,
        image_url: str,
        alt_text: Optional[str] = None,
        is_primary: bool = False,
    ) -> ProductImage:
        product = self._get(product_id)
        first = not self.images.list_for_product(product.id)

        image = self.images.create(
            product_id=product.id,
            image_url=image_url,
            alt_text=alt_text,
            is_primary=first,
            sort_order=self.images.next_sort_order(product.id),
        )
        if is_primary and not first:
            self.images.set_primary(product.id, image)
        self.db.commit()
        return image

    def set_primary_image(self, product_id: int, image_id: int) -> ProductImage:
        product = self._get(product_id)
        image = self.images.find(product.id, image_id)
        if not image:
            raise ProductImageNotFound()
        self.images.set_primary(product.id, image)
        self.db.commit()
        return image

    def delete_image(self, product_id: int, image_id: int) -> None:
        product = self._get(product_id)
        image = self.images.find(product.id, image_id)
        if not image:
            raise ProductImageNotFound()

        was_primary = image.is_primary
        self.images.delete(image)
        if was_primary:
            # 대표 이미지를 지우면 남은 첫 번째 이미지가 대표가 됨
            remaining = self.images.list_for_product(product.id)
            if remaining:
                self.images.set_primary(product.id, remaining[0])
        self.db.commit()
