# storefront/services/categories.py
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from storefront.core.errors import CategoryNotFound, Conflict, InvalidOperation, ValidationFailed
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.repositories.categories import CategoryRepository
from storefront.repositories.products import ProductFilter, ProductRepository
from storefront.utils.codes import slugify

logger = logging.getLogger(__name__)

NULLABLE_FIELDS = {"description", "parent_id", "image_url"}


class CategoryService:
    def __init__(self, db: Session, categories: CategoryRepository, products: ProductRepository):
        self.db = db
        self.categories = categories
        self.products = products

    def _get(self, category_id: int) -> Category:
        category = self.categories.find_by_id(category_id)
        if not category:
            raise CategoryNotFound()
        return category

    def _check_parent(self, parent_id: Optional[int]) -> None:
        if parent_id is not None and not self.categories.find_by_id(parent_id):
            raise CategoryNotFound("Parent category not found", code="PARENT_CATEGORY_NOT_FOUND")

    def _slug_for(self, name: str) -> str:
        slug = slugify(name)
        if not slug:
            raise ValidationFailed("Category name must contain letters or digits")
        return slug

    def create(self, **data) -> Category:
        self._check_parent(data.get("parent_id"))

        name = data["name"]
        slug = self._slug_for(name)
        if self.categories.name_exists(name):
            raise Conflict("Category with this name already exists", code="CATEGORY_NAME_EXISTS")
        if self.categories.slug_exists(slug):
            raise Conflict("Category with this slug already exists", code="CATEGORY_SLUG_EXISTS")

        category = self.categories.create(**data, slug=slug)
        self.db.commit()
        logger.info("category_id=%s created (%s)", category.id, slug)
        return category

    def get(self, category_id: int) -> Category:
        return self._get(category_id)

    def get_by_slug(self, slug: str) -> Category:
        category = self.categories.find_by_slug(slug)
        if not category:
            raise CategoryNotFound()
        return category

    def list(
        self,
        page: int = 1,
        limit: int = 20,
        is_active: Optional[bool] = None,
        parent_id: Optional[int] = None,
    ) -> Tuple[List[Category], int]:
        return self.categories.list(page=page, limit=limit, is_active=is_active, parent_id=parent_id)

    def list_active(self) -> List[Category]:
        return self.categories.list_active()

    def update(self, category_id: int, **fields) -> Category:
        category = self._get(category_id)
        fields = {k: v for k, v in fields.items() if v is not None or k in NULLABLE_FIELDS}

        if "parent_id" in fields:
            if fields["parent_id"] == category.id:
                raise InvalidOperation("Category cannot be its own parent", code="INVALID_PARENT_CATEGORY")
            self._check_parent(fields["parent_id"])

        name = fields.get("name")
        if name is not None and name != category.name:
            if self.categories.name_exists(name, exclude_id=category.id):
                raise Conflict("Category with this name already exists", code="CATEGORY_NAME_EXISTS")
            slug = self._slug_for(name)
            if self.categories.slug_exists(slug, exclude_id=category.id):
                raise Conflict("Category with this slug already exists", code="CATEGORY_SLUG_EXISTS")
            fields["slug"] = slug

        category = self.categories.update(category, **fields)
        self.db.commit()
        return category

    def delete(self, category_id: int) -> None:
        category = self._get(category_id)
        if self.products.count_in_category(category.id) > 0:
            raise InvalidOperation("Cannot delete category with existing products", code="CATEGORY_HAS_PRODUCTS")
        if self.categories.has_children(category.id):
            raise InvalidOperation(
                "Cannot delete category with existing subcategories",
                code="CATEGORY_HAS_SUBCATEGORIES",
            )
        self.categories.soft_delete(category)
        self.db.commit()
        logger.info("category_id=%s soft deleted", category.id)

    def with_products(self, category_id: int, page: int = 1, limit: int = 20) -> Tuple[Category, List[Product], int]:
        category = self._get(category_id)
        products, total = self.products.list(ProductFilter(category_id=category.id), page=page, limit=limit)
        return category, products, total
