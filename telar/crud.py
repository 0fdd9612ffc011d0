from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from . import models


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# -------------------- orders --------------------

def owner_filter(owner_keys: Sequence[str]):
    """Match orders tagged with any of the keys, by display label or by email."""
    keys = list(owner_keys)
    return or_(models.Order.seller.in_(keys), models.Order.seller_email.in_(keys))


def _order_query():
    return select(models.Order).options(
        selectinload(models.Order.products),
        selectinload(models.Order.phones),
    )


def _newest_first(stmt):
    return stmt.order_by(models.Order.created_at.desc(), models.Order.seq.desc())


def insert_order(db: Session, order: models.Order) -> str:
    db.add(order)
    db.commit()
    db.refresh(order)
    return order.id


def find_by_id(db: Session, order_id: str) -> Optional[models.Order]:
    stmt = _order_query().where(models.Order.id == order_id)
    return db.execute(stmt).scalars().first()


def find_by_id_scoped(db: Session, order_id: str, owner_keys: Sequence[str]) -> Optional[models.Order]:
    if not owner_keys:
        return None
    stmt = _order_query().where(models.Order.id == order_id, owner_filter(owner_keys))
    return db.execute(stmt).scalars().first()


def list_page(db: Session, criteria=None, skip: int = 0, limit: int = 20) -> tuple[List[models.Order], int]:
    """Return one page of orders (newest first) and the count of everything matching ``criteria``.

    Count and fetch run as two separate reads.
    """
    stmt = _order_query()
    count_stmt = select(func.count()).select_from(models.Order)
    if criteria is not None:
        stmt = stmt.where(criteria)
        count_stmt = count_stmt.where(criteria)
    total = db.execute(count_stmt).scalar_one()
    items = db.execute(_newest_first(stmt).offset(skip).limit(limit)).scalars().all()
    return list(items), total


def list_since(db: Session, since: datetime, criteria=None) -> List[models.Order]:
    stmt = _order_query().where(models.Order.created_at >= since)
    if criteria is not None:
        stmt = stmt.where(criteria)
    return list(db.execute(_newest_first(stmt)).scalars().all())


def update_status(db: Session, order_id: str, fields: dict) -> Optional[models.Order]:
    result = db.execute(
        update(models.Order)
        .where(models.Order.id == order_id)
        .values(**fields)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    if result.rowcount == 0:
        return None
    return find_by_id(db, order_id)


def replace(db: Session, order_id: str, fields: dict) -> Optional[models.Order]:
    """Replace the mutable fields of an order, child rows included."""
    order = find_by_id(db, order_id)
    if not order:
        return None
    for key, value in fields.items():
        setattr(order, key, value)
    db.add(order)
    db.commit()
    db.refresh(order)
    return order


# -------------------- users --------------------

def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.get(models.User, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.execute(select(models.User).where(models.User.email == email)).scalars().first()


def create_user(db: Session, name: str, email: str, password_hash: str, role: str) -> models.User:
    now = utcnow()
    db_user = models.User(
        name=name,
        email=email,
        password_hash=password_hash,
        role=role,
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ValueError("email already registered") from e
    db.refresh(db_user)
    return db_user


def list_users(db: Session) -> List[models.User]:
    return list(db.execute(select(models.User).order_by(models.User.id)).scalars().all())


def update_user(db: Session, user_id: int, **fields) -> Optional[models.User]:
    user = db.get(models.User, user_id)
    if not user:
        return None
    for key, value in fields.items():
        setattr(user, key, value)
    user.updated_at = utcnow()
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def touch_last_login(db: Session, user: models.User) -> models.User:
    user.last_login_at = utcnow()
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user_id: int) -> bool:
    user = db.get(models.User, user_id)
    if not user:
        return False
    db.delete(user)
    db.commit()
    return True
