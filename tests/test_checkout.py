"""Cash-on-delivery checkout."""

from conftest import API, SHIPPING, auth


async def _fill_cart(client, token, lines):
    for product_id, quantity in lines:
        response = await client.post(
            f"{API}/cart",
            json={"productId": product_id, "quantity": quantity},
            headers=auth(token),
        )
        assert response.status_code == 200


async def _checkout(client, token, **body):
    body.setdefault("shippingAddress", SHIPPING)
    return await client.post(f"{API}/checkout", json=body, headers=auth(token))


class TestCheckout:
    async def test_empty_cart(self, client, shop):
        response = await _checkout(client, shop.customer_token)
        assert response.status_code == 404

    async def test_places_order(self, client, shop):
        await _fill_cart(client, shop.customer_token, [(shop.tee_id, 2), (shop.hoodie_id, 1)])

        response = await _checkout(client, shop.customer_token, notes="Ring the bell")

        assert response.status_code == 201
        order = response.json()["data"]
        assert order["orderNumber"].startswith("ORD-")
        assert order["orderNumber"].endswith("-0001")
        assert order["orderStatus"] == "pending"
        assert order["paymentStatus"] == "pending"
        assert order["paymentMethod"] == "COD"
        assert order["subtotal"] == 2297.5
        assert order["totalAmount"] == 2297.5
        assert order["itemsCount"] == 3
        assert order["notes"] == "Ring the bell"
        assert order["customer"]["id"] == shop.customer_id
        assert order["shippingAddress"]["country"] == "India"
        lines = {i["productId"]: i for i in order["items"]}
        assert lines[shop.tee_id]["productName"] == "Classic Tee"
        assert lines[shop.tee_id]["sellerId"] == shop.seller_id
        assert lines[shop.tee_id]["storeId"] == shop.store_id
        assert lines[shop.tee_id]["total"] == 998.0

    async def test_stock_decremented_and_cart_emptied(self, client, shop, get_product):
        await _fill_cart(client, shop.customer_token, [(shop.tee_id, 2), (shop.hoodie_id, 3)])

        await _checkout(client, shop.customer_token)

        tee = await get_product(shop.tee_id)
        hoodie = await get_product(shop.hoodie_id)
        assert (tee.stock, tee.purchases) == (8, 2)
        assert (hoodie.stock, hoodie.purchases) == (0, 3)

        cart = (await client.get(f"{API}/cart", headers=auth(shop.customer_token))).json()["data"]
        assert cart["items"] == []
        assert cart["totalItems"] == 0
        assert cart["totalPrice"] == 0

    async def test_order_numbers_increase_within_a_day(self, client, shop):
        await _fill_cart(client, shop.customer_token, [(shop.tee_id, 1)])
        first = (await _checkout(client, shop.customer_token)).json()["data"]
        await _fill_cart(client, shop.customer_token, [(shop.tee_id, 1)])
        second = (await _checkout(client, shop.customer_token)).json()["data"]

        assert first["orderNumber"].endswith("-0001")
        assert second["orderNumber"].endswith("-0002")

    async def test_missing_address_fields(self, client, shop):
        await _fill_cart(client, shop.customer_token, [(shop.tee_id, 1)])

        response = await _checkout(
            client, shop.customer_token, shippingAddress={"name": "Asha Rao"}
        )

        assert response.status_code == 400
        assert "street" in response.json()["error"]

    async def test_shipping_address_required(self, client, shop):
        await _fill_cart(client, shop.customer_token, [(shop.tee_id, 1)])

        response = await client.post(
            f"{API}/checkout", json={}, headers=auth(shop.customer_token)
        )
        assert response.status_code == 400

    async def test_saved_address(self, client, shop):
        address = (
            await client.post(
                f"{API}/addresses",
                json={**SHIPPING, "city": "Mysuru", "country": "India"},
                headers=auth(shop.customer_token),
            )
        ).json()["data"]
        await _fill_cart(client, shop.customer_token, [(shop.tee_id, 1)])

        response = await client.post(
            f"{API}/checkout",
            json={"addressId": address["id"]},
            headers=auth(shop.customer_token),
        )

        assert response.status_code == 201
        assert response.json()["data"]["shippingAddress"]["city"] == "Mysuru"

    async def test_other_customers_address_not_found(self, client, shop):
        address = (
            await client.post(
                f"{API}/addresses", json=SHIPPING, headers=auth(shop.other_customer_token)
            )
        ).json()["data"]
        await _fill_cart(client, shop.customer_token, [(shop.tee_id, 1)])

        response = await client.post(
            f"{API}/checkout",
            json={"addressId": address["id"]},
            headers=auth(shop.customer_token),
        )
        assert response.status_code == 404

    async def test_customer_only(self, client, shop):
        response = await _checkout(client, shop.seller_token)
        assert response.status_code == 403


class TestCheckoutAtomicity:
    async def test_insufficient_stock_changes_nothing(self, client, shop, set_stock, get_product):
        await _fill_cart(client, shop.customer_token, [(shop.tee_id, 2), (shop.hoodie_id, 3)])
        await set_stock(shop.hoodie_id, 1)

        response = await _checkout(client, shop.customer_token)

        assert response.status_code == 400
        assert response.json()["error"] == (
            "Insufficient stock for Warm Hoodie. Available: 1, Requested: 3"
        )

        tee = await get_product(shop.tee_id)
        assert (tee.stock, tee.purchases) == (10, 0)
        assert (await get_product(shop.hoodie_id)).stock == 1

        cart = (await client.get(f"{API}/cart", headers=auth(shop.customer_token))).json()["data"]
        assert cart["totalItems"] == 5

        orders = (await client.get(f"{API}/orders", headers=auth(shop.customer_token))).json()
        assert orders["data"]["orders"] == []

    async def test_deactivated_product_blocks_checkout(self, client, shop):
        await _fill_cart(client, shop.customer_token, [(shop.tee_id, 1)])
        await client.patch(
            f"{API}/seller/products/{shop.tee_id}",
            json={"isActive": False},
            headers=auth(shop.seller_token),
        )

        response = await _checkout(client, shop.customer_token)

        assert response.status_code == 400
        orders = (await client.get(f"{API}/orders", headers=auth(shop.customer_token))).json()
        assert orders["data"]["pagination"]["totalOrders"] == 0
