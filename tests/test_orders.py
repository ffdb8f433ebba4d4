"""Order history and fulfilment lifecycle."""

import pytest
from conftest import API, SHIPPING, auth, _product

from storefront.core.security import create_access_token
from storefront.models import OrderStatus, SellerStatus, Store, User, UserRole
from storefront.modules.shop.orders import can_transition


async def _place_order(client, token, lines):
    for product_id, quantity in lines:
        await client.post(
            f"{API}/cart",
            json={"productId": product_id, "quantity": quantity},
            headers=auth(token),
        )
    response = await client.post(
        f"{API}/checkout", json={"shippingAddress": SHIPPING}, headers=auth(token)
    )
    assert response.status_code == 201
    return response.json()["data"]


async def _admin_update(client, shop, order_id, **body):
    return await client.patch(
        f"{API}/admin/orders",
        json={"orderId": order_id, **body},
        headers=auth(shop.admin_token),
    )


@pytest.fixture
async def second_seller(session_factory, shop):
    """Another seller with one product in the same catalog."""
    async with session_factory() as session:
        seller = User(
            name="Nia Knits",
            email="nia@example.com",
            hashed_password="x",
            role=UserRole.SELLER,
            seller_status=SellerStatus.APPROVED,
        )
        session.add(seller)
        await session.flush()
        store = Store(user_id=seller.id, store_name="Nia Knits", slug="nia-knits", is_active=True)
        session.add(store)
        await session.flush()
        scarf = _product(
            store, "Wool Scarf", "350.00", 6,
            category_id=shop.category_id, brand_id=shop.brand_id, is_active=True,
        )
        session.add(scarf)
        await session.commit()
        return {
            "id": seller.id,
            "token": create_access_token(seller.id, UserRole.SELLER.value),
            "product_id": scarf.id,
        }


class TestStatusTransitions:
    @pytest.mark.parametrize(
        "current,new,allowed",
        [
            (OrderStatus.PENDING, OrderStatus.CONFIRMED, True),
            (OrderStatus.PENDING, OrderStatus.SHIPPED, True),
            (OrderStatus.SHIPPED, OrderStatus.DELIVERED, True),
            (OrderStatus.CONFIRMED, OrderStatus.PENDING, False),
            (OrderStatus.DELIVERED, OrderStatus.SHIPPED, False),
            (OrderStatus.PROCESSING, OrderStatus.CANCELLED, True),
            (OrderStatus.SHIPPED, OrderStatus.CANCELLED, False),
            (OrderStatus.CANCELLED, OrderStatus.CONFIRMED, False),
        ],
    )
    def test_can_transition(self, current, new, allowed):
        assert can_transition(current, new) is allowed


class TestCustomerOrders:
    async def test_list_own_orders(self, client, shop):
        await _place_order(client, shop.customer_token, [(shop.tee_id, 1)])
        await _place_order(client, shop.other_customer_token, [(shop.hoodie_id, 1)])

        response = await client.get(f"{API}/orders", headers=auth(shop.customer_token))

        data = response.json()["data"]
        assert len(data["orders"]) == 1
        assert data["pagination"]["totalOrders"] == 1
        assert data["orders"][0]["customerId"] == shop.customer_id

    async def test_filter_by_status(self, client, shop):
        order = await _place_order(client, shop.customer_token, [(shop.tee_id, 1)])
        await _admin_update(client, shop, order["id"], orderStatus="confirmed")

        response = await client.get(
            f"{API}/orders", params={"status": "pending"}, headers=auth(shop.customer_token)
        )
        assert response.json()["data"]["orders"] == []

    async def test_get_own_order(self, client, shop):
        order = await _place_order(client, shop.customer_token, [(shop.tee_id, 1)])

        response = await client.get(
            f"{API}/orders/{order['id']}", headers=auth(shop.customer_token)
        )
        assert response.json()["data"]["orderNumber"] == order["orderNumber"]

    async def test_other_customers_order_not_found(self, client, shop):
        order = await _place_order(client, shop.customer_token, [(shop.tee_id, 1)])

        response = await client.get(
            f"{API}/orders/{order['id']}", headers=auth(shop.other_customer_token)
        )
        assert response.status_code == 404


class TestSellerOrders:
    async def test_seller_sees_only_own_lines(self, client, shop, second_seller):
        await _place_order(
            client, shop.customer_token, [(shop.tee_id, 1), (second_seller["product_id"], 2)]
        )

        response = await client.get(
            f"{API}/seller/orders", headers=auth(second_seller["token"])
        )

        orders = response.json()["data"]["orders"]
        assert len(orders) == 1
        lines = orders[0]["sellerItems"]
        assert [line["productName"] for line in lines] == ["Wool Scarf"]
        assert orders[0]["itemsCount"] == 2

    async def test_seller_without_lines_sees_nothing(self, client, shop, second_seller):
        await _place_order(client, shop.customer_token, [(shop.tee_id, 1)])

        response = await client.get(
            f"{API}/seller/orders", headers=auth(second_seller["token"])
        )
        assert response.json()["data"]["orders"] == []

    async def test_seller_advances_status(self, client, shop):
        order = await _place_order(client, shop.customer_token, [(shop.tee_id, 1)])

        response = await client.patch(
            f"{API}/seller/orders",
            json={"orderId": order["id"], "orderStatus": "confirmed"},
            headers=auth(shop.seller_token),
        )

        assert response.status_code == 200
        assert response.json()["data"]["orderStatus"] == "confirmed"

    async def test_seller_cannot_move_backwards(self, client, shop):
        order = await _place_order(client, shop.customer_token, [(shop.tee_id, 1)])
        await _admin_update(client, shop, order["id"], orderStatus="shipped")

        response = await client.patch(
            f"{API}/seller/orders",
            json={"orderId": order["id"], "orderStatus": "processing"},
            headers=auth(shop.seller_token),
        )
        assert response.status_code == 400

    async def test_seller_without_lines_forbidden(self, client, shop, second_seller):
        order = await _place_order(client, shop.customer_token, [(shop.tee_id, 1)])

        response = await client.patch(
            f"{API}/seller/orders",
            json={"orderId": order["id"], "orderStatus": "confirmed"},
            headers=auth(second_seller["token"]),
        )
        assert response.status_code == 403

    async def test_status_required(self, client, shop):
        response = await client.patch(
            f"{API}/seller/orders", json={"orderId": 1}, headers=auth(shop.seller_token)
        )
        assert response.status_code == 400


class TestAdminOrders:
    async def test_cancel_restocks(self, client, shop, get_product):
        order = await _place_order(client, shop.customer_token, [(shop.tee_id, 3)])
        assert (await get_product(shop.tee_id)).stock == 7

        response = await _admin_update(client, shop, order["id"], orderStatus="cancelled")

        assert response.status_code == 200
        assert response.json()["data"]["orderStatus"] == "cancelled"
        tee = await get_product(shop.tee_id)
        assert (tee.stock, tee.purchases) == (10, 0)

    async def test_cannot_cancel_after_shipping(self, client, shop, get_product):
        order = await _place_order(client, shop.customer_token, [(shop.tee_id, 1)])
        await _admin_update(client, shop, order["id"], orderStatus="shipped")

        response = await _admin_update(client, shop, order["id"], orderStatus="cancelled")

        assert response.status_code == 400
        assert (await get_product(shop.tee_id)).stock == 9

    async def test_cancelled_is_terminal(self, client, shop):
        order = await _place_order(client, shop.customer_token, [(shop.tee_id, 1)])
        await _admin_update(client, shop, order["id"], orderStatus="cancelled")

        response = await _admin_update(client, shop, order["id"], orderStatus="confirmed")
        assert response.status_code == 400

    async def test_payment_status(self, client, shop):
        order = await _place_order(client, shop.customer_token, [(shop.tee_id, 1)])

        response = await _admin_update(client, shop, order["id"], paymentStatus="paid")

        data = response.json()["data"]
        assert data["paymentStatus"] == "paid"
        assert data["orderStatus"] == "pending"

    async def test_invalid_values_rejected(self, client, shop):
        order = await _place_order(client, shop.customer_token, [(shop.tee_id, 1)])

        bad_status = await _admin_update(client, shop, order["id"], orderStatus="lost")
        bad_payment = await _admin_update(client, shop, order["id"], paymentStatus="refunded")
        nothing = await _admin_update(client, shop, order["id"])

        assert bad_status.status_code == 400
        assert bad_payment.status_code == 400
        assert nothing.status_code == 400

    async def test_unknown_order(self, client, shop):
        response = await _admin_update(client, shop, 9999, orderStatus="confirmed")
        assert response.status_code == 404

    async def test_list_with_stats(self, client, shop):
        first = await _place_order(client, shop.customer_token, [(shop.tee_id, 1)])
        await _place_order(client, shop.other_customer_token, [(shop.hoodie_id, 1)])
        await _admin_update(client, shop, first["id"], orderStatus="cancelled")

        response = await client.get(f"{API}/admin/orders", headers=auth(shop.admin_token))

        data = response.json()["data"]
        assert data["pagination"]["totalItems"] == 2
        assert data["stats"]["statusBreakdown"] == {
            "pending": 1,
            "confirmed": 0,
            "processing": 0,
            "shipped": 0,
            "delivered": 0,
            "cancelled": 1,
        }
        assert data["stats"]["totalRevenue"] == 1798.5

    async def test_filter_by_customer(self, client, shop):
        await _place_order(client, shop.customer_token, [(shop.tee_id, 1)])
        await _place_order(client, shop.other_customer_token, [(shop.hoodie_id, 1)])

        response = await client.get(
            f"{API}/admin/orders",
            params={"customerId": shop.other_customer_id},
            headers=auth(shop.admin_token),
        )

        orders = response.json()["data"]["orders"]
        assert [o["customerId"] for o in orders] == [shop.other_customer_id]

    async def test_order_detail(self, client, shop):
        order = await _place_order(client, shop.customer_token, [(shop.tee_id, 1)])

        response = await client.get(
            f"{API}/admin/orders/{order['id']}", headers=auth(shop.admin_token)
        )
        assert response.json()["data"]["items"][0]["productName"] == "Classic Tee"
