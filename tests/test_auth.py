"""Registration, login and role guards."""

from conftest import API, PASSWORD, auth

from storefront.core.security import decode_access_token


async def _register(client, email="new@example.com", role="customer", password="secret123"):
    return await client.post(
        f"{API}/auth/register",
        json={"name": "New User", "email": email, "password": password, "role": role},
    )


class TestRegister:
    async def test_register_customer(self, client):
        response = await _register(client)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["statusCode"] == 201
        assert body["data"]["email"] == "new@example.com"
        assert body["data"]["role"] == "customer"
        assert "hashedPassword" not in body["data"]
        assert "sellerStatus" not in body["data"]

    async def test_register_seller_starts_pending(self, client):
        response = await _register(client, email="shop@example.com", role="seller")

        assert response.status_code == 201
        assert response.json()["data"]["sellerStatus"] == "pending"

    async def test_email_is_normalized(self, client):
        response = await _register(client, email="Mixed.Case@Example.com")
        assert response.json()["data"]["email"] == "mixed.case@example.com"

    async def test_admin_cannot_self_register(self, client):
        response = await _register(client, role="admin")
        assert response.status_code == 400

    async def test_unknown_role_rejected(self, client):
        response = await _register(client, role="wizard")
        assert response.status_code == 400

    async def test_duplicate_email_rejected(self, client):
        await _register(client)
        response = await _register(client, email="NEW@example.com")

        assert response.status_code == 400
        assert response.json()["error"] == "User already exists"

    async def test_short_password_rejected(self, client):
        response = await _register(client, password="abc")
        assert response.status_code == 400

    async def test_invalid_email_rejected(self, client):
        response = await _register(client, email="not-an-email")

        body = response.json()
        assert response.status_code == 400
        assert body["success"] is False
        assert body["message"] == "Validation failed"


class TestLogin:
    async def test_login_returns_token(self, client, shop):
        response = await client.post(
            f"{API}/auth/login",
            json={"email": "asha@example.com", "password": PASSWORD},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == shop.customer_id
        payload = decode_access_token(data["token"])
        assert payload["sub"] == str(shop.customer_id)
        assert payload["role"] == "customer"

    async def test_login_is_case_insensitive_on_email(self, client, shop):
        response = await client.post(
            f"{API}/auth/login",
            json={"email": "ASHA@example.com", "password": PASSWORD},
        )
        assert response.status_code == 200

    async def test_wrong_password(self, client, shop):
        response = await client.post(
            f"{API}/auth/login",
            json={"email": "asha@example.com", "password": "wrong-password"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid credentials"

    async def test_unknown_email(self, client, shop):
        response = await client.post(
            f"{API}/auth/login",
            json={"email": "nobody@example.com", "password": PASSWORD},
        )
        assert response.status_code == 400


class TestRoleGuards:
    async def test_missing_token(self, client, shop):
        response = await client.get(f"{API}/profile")
        assert response.status_code == 401

    async def test_invalid_token(self, client, shop):
        response = await client.get(f"{API}/profile", headers=auth("garbage"))
        assert response.status_code == 401

    async def test_wrong_role(self, client, shop):
        response = await client.get(f"{API}/profile", headers=auth(shop.seller_token))

        assert response.status_code == 403
        assert response.json()["message"] == "Access denied"

    async def test_customer_cannot_reach_admin(self, client, shop):
        response = await client.get(f"{API}/admin/products", headers=auth(shop.customer_token))
        assert response.status_code == 403


class TestSystemEndpoints:
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_unknown_route_uses_error_envelope(self, client):
        response = await client.get(f"{API}/does-not-exist")

        assert response.status_code == 404
        assert response.json()["success"] is False
