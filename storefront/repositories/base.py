# storefront/repositories/base.py
import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.core.errors import StorageError

logger = logging.getLogger(__name__)


class Repository:
    """Session 은 생성자로 주입. 레포지토리는 flush 만 하고 commit 은 서비스가 한다."""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def guard(self, action: str):
        try:
            yield
        except IntegrityError:
            # 유니크 제약 위반은 호출한 쪽에서 도메인 에러로 바꾼다
            raise
        except SQLAlchemyError as exc:
            logger.exception("storage failure while trying to %s", action)
            raise StorageError() from exc


def paginate(db: Session, query, page: int, limit: int):
    """Runs the filtered select once for the rows and once as count(*)."""
    from sqlalchemy import func, select

    total = db.scalar(select(func.count()).select_from(query.order_by(None).subquery()))
    rows = db.execute(query.offset((page - 1) * limit).limit(limit)).unique().scalars().all()
    return rows, total or 0
