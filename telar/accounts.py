"""User administration, self-registration and login."""
import logging
from typing import List, NamedTuple

from sqlalchemy.orm import Session

from . import crud, models, schemas
from .access import Identity, resolve_role
from .auth import create_access_token, hash_password, verify_password
from .errors import Conflict, Forbidden, NotFound, Unauthorized, ValidationError
from .schemas import Role

logger = logging.getLogger(__name__)


class LoginOutcome(NamedTuple):
    user: models.User
    token: str


def identity_of(user: models.User) -> Identity:
    return Identity(user_id=str(user.id), email=user.email, name=user.name, role=user.role)


def _require_admin(caller: Identity) -> None:
    if resolve_role(caller) is not Role.ADMINISTRATOR:
        raise Forbidden("administrator role required")


def register(db: Session, payload: schemas.RegisterIn) -> models.User:
    """Self-registration always produces a seller account."""
    if crud.get_user_by_email(db, payload.email):
        raise Conflict("user already exists")
    try:
        user = crud.create_user(
            db, payload.name, payload.email, hash_password(payload.password), Role.SELLER.value
        )
    except ValueError as e:
        raise Conflict("user already exists") from e
    logger.info("seller %s registered", user.email)
    return user


def create_user(db: Session, payload: schemas.UserCreate, caller: Identity) -> models.User:
    _require_admin(caller)
    if crud.get_user_by_email(db, payload.email):
        raise ValidationError("email already registered", field="email")
    try:
        user = crud.create_user(
            db, payload.name, payload.email, hash_password(payload.password), payload.role.value
        )
    except ValueError as e:
        raise ValidationError(str(e), field="email") from e
    logger.info("user %s (%s) created by %s", user.email, user.role, caller.email)
    return user


def list_users(db: Session, caller: Identity) -> List[models.User]:
    _require_admin(caller)
    return crud.list_users(db)


def set_user_active(db: Session, user_id: int, active: bool, caller: Identity) -> models.User:
    _require_admin(caller)
    user = crud.update_user(db, user_id, is_active=active)
    if not user:
        raise NotFound("user")
    logger.info("user %s %s by %s", user.email, "activated" if active else "deactivated", caller.email)
    return user


def delete_user(db: Session, user_id: int, caller: Identity) -> None:
    _require_admin(caller)
    if str(user_id) == caller.user_id:
        raise ValidationError("you cannot delete your own account", field="id")
    if not crud.delete_user(db, user_id):
        raise NotFound("user")
    logger.info("user %s deleted by %s", user_id, caller.email)


def login(db: Session, email: str, password: str) -> LoginOutcome:
    user = crud.get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        logger.info("failed login for %s", email)
        raise Unauthorized("invalid credentials")
    # deactivation only applies to sellers
    if not user.is_active and user.role != Role.ADMINISTRATOR.value:
        logger.info("login refused for deactivated user %s", email)
        raise Forbidden("your account has been deactivated; contact an administrator")
    user = crud.touch_last_login(db, user)
    token = create_access_token(user.id, user.email, user.name, user.role)
    logger.info("user %s logged in", email)
    return LoginOutcome(user, token)
