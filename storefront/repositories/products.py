# storefront/repositories/products.py
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import asc, desc, func, or_, select
from sqlalchemy.exc import IntegrityError

from storefront.core.errors import Conflict
from storefront.models.enums import ProductStatus
from storefront.models.product import Product, ProductImage
from storefront.repositories.base import Repository, paginate
from storefront.utils.clock import utcnow

PRODUCT_FIELDS = {
    "name",
    "description",
    "slug",
    "sku",
    "price",
    "compare_price",
    "cost_price",
    "stock_quantity",
    "low_stock_threshold",
    "category_id",
    "brand",
    "status",
    "is_featured",
    "created_by",
}

SORT_COLUMNS = {
    "created_at": Product.created_at,
    "name": Product.name,
    "price": Product.price,
    "stock_quantity": Product.stock_quantity,
}


@dataclass
class ProductFilter:
    status: Optional[ProductStatus] = None
    category_id: Optional[int] = None
    is_featured: Optional[bool] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    in_stock: Optional[bool] = None
    brand: Optional[str] = None
    q: Optional[str] = None
    sort_by: str = "created_at"
    sort_order: str = "desc"


class ProductRepository(Repository):
    def _live(self):
        return select(Product).where(Product.deleted_at.is_(None))

    def create(self, **data) -> Product:
        product = Product(**{k: v for k, v in data.items() if k in PRODUCT_FIELDS})
        with self.guard("create product"):
            try:
                self.db.add(product)
                self.db.flush()
            except IntegrityError:
                self.db.rollback()
                raise Conflict("Product with this SKU or slug already exists", code="PRODUCT_DUPLICATE")
        return product

    def find_by_id(self, product_id: int) -> Optional[Product]:
        with self.guard("find product"):
            return self.db.execute(self._live().where(Product.id == product_id)).unique().scalar_one_or_none()

    def find_by_slug(self, slug: str) -> Optional[Product]:
        with self.guard("find product by slug"):
            return self.db.execute(self._live().where(Product.slug == slug)).unique().scalar_one_or_none()

    def sku_exists(self, sku: str, exclude_id: Optional[int] = None) -> bool:
        q = select(Product.id).where(Product.sku == sku)
        if exclude_id is not None:
            q = q.where(Product.id != exclude_id)
        with self.guard("check product sku"):
            return self.db.execute(q.limit(1)).first() is not None

    def slug_exists(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        q = select(Product.id).where(Product.slug == slug)
        if exclude_id is not None:
            q = q.where(Product.id != exclude_id)
        with self.guard("check product slug"):
            return self.db.execute(q.limit(1)).first() is not None

    def list(self, filters: ProductFilter, page: int = 1, limit: int = 20) -> Tuple[List[Product], int]:
        q = self._live()

        # 검색/필터
        if filters.q:
            like = f"%{filters.q}%"
            q = q.where(or_(Product.name.ilike(like), Product.description.ilike(like)))
        if filters.status:
            q = q.where(Product.status == filters.status)
        if filters.category_id is not None:
            q = q.where(Product.category_id == filters.category_id)
        if filters.is_featured is not None:
            q = q.where(Product.is_featured.is_(filters.is_featured))
        if filters.min_price is not None:
            q = q.where(Product.price >= filters.min_price)
        if filters.max_price is not None:
            q = q.where(Product.price <= filters.max_price)
        if filters.in_stock:
            q = q.where(Product.stock_quantity > 0)
        if filters.brand:
            q = q.where(Product.brand == filters.brand)

        column = SORT_COLUMNS.get(filters.sort_by, Product.created_at)
        direction = asc if filters.sort_order == "asc" else desc
        q = q.order_by(direction(column), direction(Product.id))

        with self.guard("list products"):
            return paginate(self.db, q, page, limit)

    def count_in_category(self, category_id: int) -> int:
        q = select(func.count(Product.id)).where(Product.category_id == category_id, Product.deleted_at.is_(None))
        with self.guard("count products in category"):
            return self.db.scalar(q) or 0

    def update(self, product: Product, **fields) -> Product:
        with self.guard("update product"):
            try:
                for key, value in fields.items():
                    if key in PRODUCT_FIELDS:
                        setattr(product, key, value)
                product.updated_at = utcnow()
                self.db.flush()
            except IntegrityError:
                self.db.rollback()
                raise Conflict("Product with this SKU or slug already exists", code="PRODUCT_DUPLICATE")
        return product

    def soft_delete(self, product: Product) -> None:
        with self.guard("soft delete product"):
            product.deleted_at = utcnow()
            self.db.flush()


class ProductImageRepository(Repository):
    def find(self, product_id: int, image_id: int) -> Optional[ProductImage]:
        q = select(ProductImage).where(ProductImage.id == image_id, ProductImage.product_id == product_id)
        with self.guard("find product image"):
            return self.db.execute(q).scalar_one_or_none()

    def list_for_product(self, product_id: int) -> List[ProductImage]:
        q = (
            select(ProductImage)
            .where(ProductImage.product_id == product_id)
            .order_by(asc(ProductImage.sort_order), asc(ProductImage.id))
        )
        with self.guard("list product images"):
            return list(self.db.execute(q).scalars().all())

    def next_sort_order(self, product_id: int) -> int:
        q = select(func.coalesce(func.max(ProductImage.sort_order), 0) + 1).where(ProductImage.product_id == product_id)
        with self.guard("next image sort order"):
            return self.db.scalar(q) or 1

    def create(self, product_id: int, image_url: str, alt_text: Optional[str], is_primary: bool, sort_order: int) -> ProductImage:
        image = ProductImage(
            product_id=product_id,
            image_url=image_url,
            alt_text=alt_text,
            is_primary=is_primary,
            sort_order=sort_order,
        )
        with self.guard("create product image"):
            self.db.add(image)
            self.db.flush()
        return image

    def set_primary(self, product_id: int, image: ProductImage) -> ProductImage:
        with self.guard("set primary image"):
            for other in self.list_for_product(product_id):
                other.is_primary = other.id == image.id
            self.db.flush()
        return image

    def delete(self, image: ProductImage) -> None:
        with self.guard("delete product image"):
            self.db.delete(image)
            self.db.flush()
