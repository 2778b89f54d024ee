# storefront/repositories/categories.py
from typing import List, Optional, Tuple

from sqlalchemy import asc, select
from sqlalchemy.exc import IntegrityError

from storefront.core.errors import Conflict
from storefront.models.category import Category
from storefront.repositories.base import Repository, paginate
from storefront.utils.clock import utcnow

CATEGORY_FIELDS = {"name", "description", "slug", "parent_id", "image_url", "is_active", "sort_order"}


class CategoryRepository(Repository):
    def _live(self):
        return select(Category).where(Category.deleted_at.is_(None))

    def create(self, **data) -> Category:
        category = Category(**{k: v for k, v in data.items() if k in CATEGORY_FIELDS})
        with self.guard("create category"):
            try:
                self.db.add(category)
                self.db.flush()
            except IntegrityError:
                self.db.rollback()
                raise Conflict("Category with this name or slug already exists", code="CATEGORY_DUPLICATE")
        return category

    def find_by_id(self, category_id: int) -> Optional[Category]:
        with self.guard("find category"):
            return self.db.execute(self._live().where(Category.id == category_id)).unique().scalar_one_or_none()

    def find_by_slug(self, slug: str) -> Optional[Category]:
        with self.guard("find category by slug"):
            return self.db.execute(self._live().where(Category.slug == slug)).unique().scalar_one_or_none()

    def name_exists(self, name: str, exclude_id: Optional[int] = None) -> bool:
        q = self._live().where(Category.name == name)
        if exclude_id is not None:
            q = q.where(Category.id != exclude_id)
        with self.guard("check category name"):
            return self.db.execute(q.limit(1)).unique().first() is not None

    def slug_exists(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        # soft delete 된 행도 slug 유니크 제약에 걸리므로 전체에서 확인
        q = select(Category.id).where(Category.slug == slug)
        if exclude_id is not None:
            q = q.where(Category.id != exclude_id)
        with self.guard("check category slug"):
            return self.db.execute(q.limit(1)).first() is not None

    def list(
        self,
        page: int = 1,
        limit: int = 20,
        is_active: Optional[bool] = None,
        parent_id: Optional[int] = None,
    ) -> Tuple[List[Category], int]:
        q = self._live()
        if is_active is not None:
            q = q.where(Category.is_active.is_(is_active))
        if parent_id is not None:
            q = q.where(Category.parent_id == parent_id)
        q = q.order_by(asc(Category.sort_order), asc(Category.name))
        with self.guard("list categories"):
            return paginate(self.db, q, page, limit)

    def list_active(self) -> List[Category]:
        q = self._live().where(Category.is_active.is_(True)).order_by(asc(Category.sort_order), asc(Category.name))
        with self.guard("list active categories"):
            return list(self.db.execute(q).unique().scalars().all())

    def has_children(self, category_id: int) -> bool:
        q = select(Category.id).where(Category.parent_id == category_id, Category.deleted_at.is_(None)).limit(1)
        with self.guard("check sub-categories"):
            return self.db.execute(q).first() is not None

    def update(self, category: Category, **fields) -> Category:
        with self.guard("update category"):
            for key, value in fields.items():
                if key in CATEGORY_FIELDS:
                    setattr(category, key, value)
            category.updated_at = utcnow()
            self.db.flush()
        return category

    def soft_delete(self, category: Category) -> None:
        with self.guard("soft delete category"):
            category.deleted_at = utcnow()
            self.db.flush()
