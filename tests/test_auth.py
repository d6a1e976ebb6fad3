from carpark.core.security import create_refresh_token
from carpark.models.user import User


def _register(client, email="anna@example.com", password="hunter2hunter2"):
    return client.post(
        "/api/v1/auth/register",
        json={"email": email, "full_name": "Anna Jónsdóttir", "password": password, "locale": "en"},
    )


def test_register_and_login(client):
    response = _register(client)
    assert response.status_code == 201
    assert response.json()["user"]["role"] == "CUSTOMER"

    login = client.post("/api/v1/auth/login", data={"username": "Anna@Example.com", "password": "hunter2hunter2"})
    assert login.status_code == 200
    token = login.json()["access_token"]
    assert client.post("/api/v1/auth/logout", headers={"Authorization": f"Bearer {token}"}).status_code == 200


def test_wrong_password(client):
    _register(client)
    response = client.post("/api/v1/auth/login", data={"username": "anna@example.com", "password": "nope-nope"})
    assert response.status_code == 401


def test_duplicate_registration(client):
    _register(client)
    assert _register(client).status_code == 400


def test_guest_account_is_claimed(client, db):
    db.add(User(email="guest@example.com", full_name="Guest", is_active=True))
    db.commit()

    check = client.get("/api/v1/auth/check-email", params={"email": "guest@example.com"}).json()
    assert check == {"exists": True, "has_password": False}

    assert _register(client, email="guest@example.com").status_code == 201
    assert db.query(User).filter(User.email == "guest@example.com").count() == 1


def test_refresh_token(client, customer):
    response = client.post("/api/v1/auth/refresh", json={"refresh_token": create_refresh_token(str(customer.id))})
    assert response.status_code == 200
    assert response.json()["user"]["email"] == "customer@example.com"


def test_access_token_is_not_a_refresh_token(client, customer_headers):
    token = customer_headers["Authorization"].split()[1]
    assert client.post("/api/v1/auth/refresh", json={"refresh_token": token}).status_code == 401


def test_admin_register_needs_secret(client):
    response = client.post(
        "/api/v1/auth/admin/register",
        json={"email": "boss@example.com", "full_name": "Boss", "password": "hunter2hunter2", "admin_secret": "guess"},
    )
    assert response.status_code == 403
