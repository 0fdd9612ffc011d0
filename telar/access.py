"""Role-scoped entry points to the order core.

Every operation takes the caller's identity explicitly. Sellers only ever see
orders tagged with one of their owner keys; administrators see everything.
An order outside the caller's scope is reported exactly like a missing one.
"""
import logging
import math
import re
from typing import Iterable, List, NamedTuple, Optional

from sqlalchemy.orm import Session

from . import crud, lifecycle, models
from .crud import utcnow
from .errors import Forbidden, NotFound, ValidationError
from .schemas import Role
from .utils import months_before

logger = logging.getLogger(__name__)

RECENT_MONTHS = 3

_PUBLIC_ID = re.compile(r"^[0-9a-f]{32}$")


class Identity(NamedTuple):
    user_id: str
    email: Optional[str]
    name: Optional[str]
    role: str


class Page(NamedTuple):
    orders: List[models.Order]
    total: int
    total_pages: int
    page: int
    limit: int


def resolve_role(identity: Optional[Identity]) -> Role:
    if identity is None:
        raise Forbidden("authentication required")
    try:
        return Role(identity.role)
    except ValueError:
        logger.warning("user %s has unsupported role %r", identity.user_id, identity.role)
        raise Forbidden("role not allowed") from None


def owner_keys(identity: Identity) -> List[str]:
    """Both the email and the display name identify a seller's orders."""
    return _unique([identity.email, identity.name])


def _unique(values: Iterable[Optional[str]]) -> List[str]:
    keys: List[str] = []
    for v in values:
        if v and v not in keys:
            keys.append(v)
    return keys


def _scope(identity: Identity):
    """SQL criteria limiting orders to the caller's scope (``None`` means unrestricted)."""
    match resolve_role(identity):
        case Role.ADMINISTRATOR:
            return None
        case Role.SELLER:
            keys = owner_keys(identity)
            if not keys:
                raise Forbidden("seller identity has neither email nor name")
            return crud.owner_filter(keys)


def _require_admin(identity: Identity, action: str) -> None:
    if resolve_role(identity) is not Role.ADMINISTRATOR:
        logger.warning("user %s tried to %s without administrator role", identity.user_id, action)
        raise Forbidden(f"only administrators can {action}")


def _find_in_scope(db: Session, order_id: str, identity: Identity) -> Optional[models.Order]:
    role = resolve_role(identity)
    if not isinstance(order_id, str) or not _PUBLIC_ID.match(order_id):
        return None
    match role:
        case Role.ADMINISTRATOR:
            return crud.find_by_id(db, order_id)
        case Role.SELLER:
            return crud.find_by_id_scoped(db, order_id, owner_keys(identity))


# -------------------- operations --------------------

def create_order(db: Session, payload, identity: Identity) -> models.Order:
    if resolve_role(identity) is not Role.SELLER:
        raise Forbidden("only sellers can create orders")
    seller = identity.name or identity.email
    if not seller:
        raise Forbidden("seller identity has neither email nor name")
    return lifecycle.create(db, payload, seller=seller, seller_email=identity.email)


def get_order(db: Session, order_id: str, identity: Identity) -> models.Order:
    order = _find_in_scope(db, order_id, identity)
    if order is None:
        raise NotFound("order")
    return order


def update_order_status(
    db: Session, order_id: str, state, identity: Identity, observation: Optional[str] = None
) -> models.Order:
    _require_admin(identity, "change order status")
    return lifecycle.update_status(db, _find_in_scope(db, order_id, identity), state, observation)


def replace_order(db: Session, order_id: str, payload, identity: Identity) -> models.Order:
    # a seller's vendedora is ignored, as on create
    is_admin = resolve_role(identity) is Role.ADMINISTRATOR
    order = _find_in_scope(db, order_id, identity)
    return lifecycle.update_full(db, order, payload, allow_relabel=is_admin)


def list_orders(db: Session, identity: Identity, page: int = 1, page_size: int = 20) -> Page:
    criteria = _scope(identity)
    if page < 1:
        raise ValidationError("page must be 1 or greater", field="page")
    if page_size < 1:
        raise ValidationError("page size must be 1 or greater", field="limit")
    skip = (page - 1) * page_size
    orders, total = crud.list_page(db, criteria, skip=skip, limit=page_size)
    return Page(orders, total, math.ceil(total / page_size), page, page_size)


def list_recent_orders(db: Session, identity: Identity, months: int = RECENT_MONTHS) -> List[models.Order]:
    """Orders created in the last ``months`` calendar months, newest first."""
    criteria = _scope(identity)
    if months < 1:
        raise ValidationError("months must be 1 or greater", field="months")
    since = months_before(utcnow(), months)
    return crud.list_since(db, since, criteria)
