import logging
from typing import List

import jwt
from fastapi import Body, Cookie, Depends, FastAPI, Header, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import access, accounts, schemas
from .access import Identity
from .auth import COOKIE_NAME, decode_access_token, token_from_request
from .config import get_settings
from .db import Base, engine, get_db
from .errors import TelarError, Unauthorized, ValidationError

logging.basicConfig(level=get_settings().log_level)

# Create tables if not existing. Older SQLite files are brought forward by migration/.
Base.metadata.create_all(bind=engine)

app = FastAPI(title="Telar Orders")


@app.exception_handler(TelarError)
async def telar_error_handler(request: Request, exc: TelarError) -> JSONResponse:
    """Map domain errors to their HTTP status."""
    content = {"detail": str(exc), "error_type": type(exc).__name__}
    if isinstance(exc, ValidationError) and exc.field:
        content["field"] = exc.field
    return JSONResponse(status_code=exc.status_code, content=content)


def get_identity(
    authorization: str | None = Header(default=None),
    auth_token: str | None = Cookie(default=None, alias=COOKIE_NAME),
) -> Identity:
    token = token_from_request(authorization, auth_token)
    if not token:
        raise Unauthorized("not authenticated")
    try:
        claims = decode_access_token(token)
    except jwt.PyJWTError:
        raise Unauthorized("invalid token") from None
    return Identity(
        user_id=str(claims.get("sub")),
        email=claims.get("email"),
        name=claims.get("name"),
        role=claims.get("role"),
    )


@app.get("/health")
async def health():
    return {"status": "ok"}


# -------------------- auth --------------------

@app.post("/auth/login", response_model=schemas.LoginResult)
async def auth_login(payload: schemas.LoginIn, response: Response, db: Session = Depends(get_db)):
    outcome = accounts.login(db, payload.email, payload.password)
    settings = get_settings()
    response.set_cookie(
        COOKIE_NAME,
        outcome.token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=settings.token_ttl_seconds,
    )
    user = outcome.user
    return schemas.LoginResult(
        access_token=outcome.token,
        user=schemas.IdentityRead(id=str(user.id), email=user.email, name=user.name, role=user.role),
    )


@app.post("/auth/logout")
async def auth_logout(response: Response):
    response.delete_cookie(COOKIE_NAME)
    return {"status": "ok"}


@app.get("/auth/me", response_model=schemas.IdentityRead)
async def auth_me(identity: Identity = Depends(get_identity)):
    return schemas.IdentityRead(id=identity.user_id, email=identity.email, name=identity.name, role=identity.role)


@app.post("/register", response_model=schemas.UserRead, status_code=201)
async def register(payload: schemas.RegisterIn, db: Session = Depends(get_db)):
    return accounts.register(db, payload)


# -------------------- users (administrators) --------------------

@app.get("/usuarios", response_model=List[schemas.UserRead])
async def get_users(db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    return accounts.list_users(db, identity)


@app.post("/usuarios", response_model=schemas.UserRead, status_code=201)
async def create_user(
    payload: schemas.UserCreate, db: Session = Depends(get_db), identity: Identity = Depends(get_identity)
):
    return accounts.create_user(db, payload, identity)


@app.patch("/usuarios/{user_id}", response_model=schemas.UserRead)
async def update_user_status(
    user_id: int,
    payload: schemas.UserStatusUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    return accounts.set_user_active(db, user_id, payload.is_active, identity)


@app.delete("/usuarios/{user_id}")
async def delete_user(user_id: int, db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    accounts.delete_user(db, user_id, identity)
    return {"deleted": user_id}


# -------------------- orders --------------------

@app.post("/pedidos", response_model=schemas.OrderCreated, status_code=201)
async def create_order(
    payload: dict = Body(...), db: Session = Depends(get_db), identity: Identity = Depends(get_identity)
):
    order = access.create_order(db, payload, identity)
    return schemas.OrderCreated(id=order.id)


@app.get("/pedidos", response_model=schemas.OrderPage)
async def list_orders(
    page: int = Query(1),
    limit: int | None = Query(default=None),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    if limit is None:
        limit = get_settings().default_page_size
    result = access.list_orders(db, identity, page=page, page_size=limit)
    return {
        "orders": result.orders,
        "total": result.total,
        "total_pages": result.total_pages,
        "page": result.page,
        "limit": result.limit,
    }


# declared before /pedidos/{order_id} so the literal path wins
@app.get("/pedidos/recientes", response_model=schemas.OrderList)
async def list_recent_orders(db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    return {"orders": access.list_recent_orders(db, identity)}


@app.get("/pedidos/{order_id}", response_model=schemas.OrderRead)
async def get_order(order_id: str, db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    return access.get_order(db, order_id, identity)


@app.patch("/pedidos/{order_id}", response_model=schemas.OrderRead)
async def update_order_status(
    order_id: str,
    payload: schemas.StatusUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    return access.update_order_status(db, order_id, payload.estado, identity, observation=payload.observacionEntrega)


@app.put("/pedidos/{order_id}", response_model=schemas.OrderRead)
async def replace_order(
    order_id: str,
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    return access.replace_order(db, order_id, payload, identity)
