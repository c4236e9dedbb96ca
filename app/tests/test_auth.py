from ..core.security import create_access_token
from ..admin.models import AdminSettings
from .conftest import API, auth_headers, make_user


def register(client, username="carol", email=None, password="secret123"):
    return client.post(f"{API}/auth/register", json={
        "email": email or f"{username}@example.com",
        "username": username,
        "password": password,
    })


def test_register_and_login(client):
    response = register(client)
    assert response.status_code == 201
    user = response.json()["user"]
    assert user["status"] == "approved"
    assert user["nickname"] == "carol"
    assert "password" not in user

    response = client.post(f"{API}/auth/login", json={"email": "carol@example.com", "password": "secret123"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["token"]
    assert data["user"]["username"] == "carol"


def test_login_with_wrong_password(client):
    register(client)
    response = client.post(f"{API}/auth/login", json={"email": "carol@example.com", "password": "nope123"})
    assert response.status_code == 401
    assert response.json() == {"error": "unauthorized", "detail": "Invalid email or password"}


def test_registration_waits_for_approval_when_required(client, db):
    db.add(AdminSettings(user_approval_required=True, portfolio_approval_required=False))
    db.commit()

    response = register(client)
    assert response.status_code == 201
    assert response.json()["user"]["status"] == "pending"
    assert "approval" in response.json()["message"]

    response = client.post(f"{API}/auth/login", json={"email": "carol@example.com", "password": "secret123"})
    assert response.status_code == 403
    assert response.json()["detail"] == "Account is pending approval"


def test_banned_user_cannot_login(client, db):
    make_user(db, "mallory", status="banned")
    response = client.post(f"{API}/auth/login", json={"email": "mallory@example.com", "password": "secret123"})
    assert response.status_code == 403
    assert response.json()["detail"] == "Account has been banned"


def test_duplicate_registration_conflicts(client):
    assert register(client).status_code == 201
    response = register(client, username="carol", email="other@example.com")
    assert response.status_code == 409
    assert response.json()["error"] == "conflict"
    response = register(client, username="carol2", email="carol@example.com")
    assert response.status_code == 409


def test_registration_validation_errors_are_bad_requests(client):
    response = register(client, username="ab")
    assert response.status_code == 400
    assert response.json()["error"] == "bad_request"
    assert register(client, password="123").status_code == 400


def test_protected_endpoint_requires_token(client):
    response = client.get(f"{API}/users/me")
    assert response.status_code == 401
    assert response.json() == {"error": "unauthorized", "detail": "Authorization token required"}


def test_invalid_token_is_rejected(client):
    response = client.get(f"{API}/users/me", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token"


def test_token_from_query_parameter(client, alice):
    token = create_access_token(alice.id, alice.email, alice.role)
    response = client.get(f"{API}/users/me", params={"token": token})
    assert response.status_code == 200
    assert response.json()["data"]["username"] == "alice"


def test_header_wins_over_query_parameter(client, alice, bob):
    bob_token = create_access_token(bob.id, bob.email, bob.role)
    response = client.get(f"{API}/users/me", params={"token": bob_token}, headers=auth_headers(alice))
    assert response.json()["data"]["username"] == "alice"


def test_optional_auth_treats_bad_token_as_anonymous(client):
    response = client.get(f"{API}/portfolios", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 200
    assert response.json()["total"] == 0


def test_admin_endpoints_require_admin_role(client, alice, admin):
    response = client.get(f"{API}/admin/users", headers=auth_headers(alice))
    assert response.status_code == 403
    assert response.json() == {"error": "forbidden", "detail": "Admin access required"}
    assert client.get(f"{API}/admin/users", headers=auth_headers(admin)).status_code == 200


def test_update_profile(client, alice, bob):
    response = client.put(f"{API}/users/me", json={"nickname": "Al", "bio": "Designer"}, headers=auth_headers(alice))
    assert response.status_code == 200
    assert response.json()["data"]["nickname"] == "Al"
    assert response.json()["data"]["bio"] == "Designer"

    response = client.put(f"{API}/users/me", json={"username": "bob"}, headers=auth_headers(alice))
    assert response.status_code == 409
