import pytest

from telar import accounts, schemas
from telar.errors import Forbidden, NotFound, Unauthorized, ValidationError


def test_register_always_creates_seller(client):
    r = client.post("/register", json={"name": "Carla", "email": "carla@telar.co", "password": "secret1", "role": "administradora"})
    assert r.status_code == 201
    body = r.json()
    assert body["role"] == "vendedora"
    assert body["isActive"] is True
    assert body["createdAt"].endswith(("Z", "+00:00"))
    assert "password" not in body and "password_hash" not in body


def test_register_duplicate_email_conflicts(client):
    payload = {"name": "Carla", "email": "carla@telar.co", "password": "secret1"}
    assert client.post("/register", json=payload).status_code == 201
    r = client.post("/register", json=payload)
    assert r.status_code == 409


def test_register_short_password_rejected(client):
    r = client.post("/register", json={"name": "Carla", "email": "carla@telar.co", "password": "12345"})
    assert r.status_code == 422


def test_password_login_flow(client):
    client.post("/register", json={"name": "PwUser", "email": "pw@telar.co", "password": "secret1"})

    r = client.post("/auth/login", json={"email": "pw@telar.co", "password": "wrong"})
    assert r.status_code == 401

    r = client.post("/auth/login", json={"email": "pw@telar.co", "password": "secret1"})
    assert r.status_code == 200
    assert "access_token" in r.json()
    assert r.json()["user"]["role"] == "vendedora"
    assert "auth-token" in r.cookies

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {r.json()['access_token']}"})
    assert me.json()["email"] == "pw@telar.co"
    assert me.json()["name"] == "PwUser"


def test_login_stamps_last_login(db_session, make_user):
    user, _, _ = make_user("dora@telar.co", "Dora")
    assert user.last_login_at is None
    outcome = accounts.login(db_session, "dora@telar.co", "secret1")
    assert outcome.user.last_login_at is not None


def test_email_is_case_sensitive(db_session, make_user):
    make_user("dora@telar.co", "Dora")
    with pytest.raises(Unauthorized):
        accounts.login(db_session, "DORA@telar.co", "secret1")


def test_deactivated_seller_cannot_login(client, seller, admin):
    user, _, _ = seller
    _, _, yeny = admin
    r = client.patch(f"/usuarios/{user.id}", json={"isActive": False}, headers=yeny)
    assert r.status_code == 200
    assert r.json()["isActive"] is False

    r = client.post("/auth/login", json={"email": "ana@telar.co", "password": "secret1"})
    assert r.status_code == 403


def test_deactivated_admin_can_still_login(db_session, admin, make_user):
    user, yeny, _ = admin
    _, other_admin, _ = make_user("zoe@telar.co", "Zoe", role="administradora")
    accounts.set_user_active(db_session, user.id, False, other_admin)
    assert accounts.login(db_session, "yeny@telar.co", "secret1").token


def test_user_admin_is_admin_only(client, seller, admin):
    _, _, ana = seller
    _, _, yeny = admin
    assert client.get("/usuarios", headers=ana).status_code == 403
    assert client.post("/usuarios", json={"nombre": "X", "email": "x@telar.co", "password": "secret1"}, headers=ana).status_code == 403

    r = client.get("/usuarios", headers=yeny)
    assert r.status_code == 200
    assert {u["email"] for u in r.json()} == {"ana@telar.co", "yeny@telar.co"}
    assert all("password_hash" not in u for u in r.json())


def test_admin_creates_users(client, admin):
    _, _, yeny = admin
    r = client.post(
        "/usuarios",
        json={"nombre": "Gloria", "email": "gloria@telar.co", "password": "secret1", "role": "administradora"},
        headers=yeny,
    )
    assert r.status_code == 201
    assert r.json()["role"] == "administradora"

    dup = client.post("/usuarios", json={"nombre": "G", "email": "gloria@telar.co", "password": "secret1"}, headers=yeny)
    assert dup.status_code == 400

    bad_role = client.post("/usuarios", json={"nombre": "H", "email": "h@telar.co", "password": "secret1", "role": "jefa"}, headers=yeny)
    assert bad_role.status_code == 422


def test_delete_user_rules(db_session, seller, admin):
    user, ana, _ = seller
    me, yeny, _ = admin
    with pytest.raises(Forbidden):
        accounts.delete_user(db_session, me.id, ana)
    with pytest.raises(ValidationError):
        accounts.delete_user(db_session, me.id, yeny)
    accounts.delete_user(db_session, user.id, yeny)
    with pytest.raises(NotFound):
        accounts.delete_user(db_session, user.id, yeny)


def test_delete_user_over_http(client, seller, admin):
    user, _, _ = seller
    _, _, yeny = admin
    r = client.delete(f"/usuarios/{user.id}", headers=yeny)
    assert r.status_code == 200
    assert r.json()["deleted"] == user.id
    assert client.delete(f"/usuarios/{user.id}", headers=yeny).status_code == 404


def test_create_user_requires_admin_identity(db_session, seller):
    _, ana, _ = seller
    payload = schemas.UserCreate(name="Nora", email="nora@telar.co", password="secret1")
    with pytest.raises(Forbidden):
        accounts.create_user(db_session, payload, ana)
