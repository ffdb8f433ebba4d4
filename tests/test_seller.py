"""Seller store, product listings and attribute lookups."""

from conftest import API, SHIPPING, auth

from storefront.core.config import settings


def _listing(shop, **overrides):
    return {
        "name": "Linen Shirt",
        "description": "Breathable",
        "price": "899.00",
        "stock": 4,
        "category": shop.category_id,
        "brand": shop.brand_id,
        **overrides,
    }


class TestStore:
    async def test_create_store(self, client, shop):
        response = await client.post(
            f"{API}/seller/store",
            json={"storeName": "Pat's Picks", "storeDescription": "Curated"},
            headers=auth(shop.pending_seller_token),
        )

        assert response.status_code == 201
        store = response.json()["data"]
        assert store["storeName"] == "Pat's Picks"
        assert store["slug"] == "pat-s-picks"
        assert store["userId"] == shop.pending_seller_id

    async def test_one_store_per_seller(self, client, shop):
        response = await client.post(
            f"{API}/seller/store",
            json={"storeName": "Second Shop"},
            headers=auth(shop.seller_token),
        )
        assert response.status_code == 400

    async def test_store_name_taken(self, client, shop):
        response = await client.post(
            f"{API}/seller/store",
            json={"storeName": "Acme Outfitters"},
            headers=auth(shop.pending_seller_token),
        )
        assert response.status_code == 409

    async def test_approval_enforced_when_enabled(self, client, shop, monkeypatch):
        monkeypatch.setattr(settings, "require_seller_approval", True)

        response = await client.post(
            f"{API}/seller/store",
            json={"storeName": "Pat's Picks"},
            headers=auth(shop.pending_seller_token),
        )
        assert response.status_code == 403

    async def test_get_store(self, client, shop):
        own = await client.get(f"{API}/seller/store", headers=auth(shop.seller_token))
        none = await client.get(f"{API}/seller/store", headers=auth(shop.pending_seller_token))

        assert [s["id"] for s in own.json()["data"]] == [shop.store_id]
        assert none.json()["data"] == []

    async def test_update_store(self, client, shop):
        response = await client.patch(
            f"{API}/seller/store/{shop.store_id}",
            json={"storeName": "Acme Apparel"},
            headers=auth(shop.seller_token),
        )

        store = response.json()["data"]
        assert store["storeName"] == "Acme Apparel"
        assert store["slug"] == "acme-apparel"

    async def test_update_other_sellers_store(self, client, shop):
        response = await client.patch(
            f"{API}/seller/store/{shop.store_id}",
            json={"storeName": "Mine Now"},
            headers=auth(shop.pending_seller_token),
        )
        assert response.status_code == 404

    async def test_status(self, client, shop):
        response = await client.get(f"{API}/seller/status", headers=auth(shop.seller_token))

        data = response.json()["data"]
        assert data["sellerStatus"] == "approved"
        assert data["hasStore"] is True
        assert data["storeId"] == shop.store_id

    async def test_customer_forbidden(self, client, shop):
        response = await client.get(f"{API}/seller/store", headers=auth(shop.customer_token))
        assert response.status_code == 403

    async def test_delete_store_removes_products(self, client, shop, get_product):
        response = await client.delete(
            f"{API}/seller/store/{shop.store_id}", headers=auth(shop.seller_token)
        )
        assert response.status_code == 200

        for product_id in (shop.tee_id, shop.hoodie_id, shop.jacket_id):
            assert await get_product(product_id) is None

        status = await client.get(f"{API}/seller/status", headers=auth(shop.seller_token))
        assert status.json()["data"]["hasStore"] is False

    async def test_delete_store_with_orders(self, client, shop, get_product):
        token = shop.customer_token
        await client.post(
            f"{API}/cart", json={"productId": shop.tee_id, "quantity": 2}, headers=auth(token)
        )
        order = (
            await client.post(
                f"{API}/checkout", json={"shippingAddress": SHIPPING}, headers=auth(token)
            )
        ).json()["data"]

        response = await client.delete(
            f"{API}/seller/store/{shop.store_id}", headers=auth(shop.seller_token)
        )
        assert response.status_code == 200
        assert await get_product(shop.tee_id) is None

        kept = await client.get(f"{API}/orders/{order['id']}", headers=auth(token))
        line = kept.json()["data"]["items"][0]
        assert (line["productId"], line["storeId"]) == (None, None)
        assert (line["productName"], line["quantity"], line["price"]) == ("Classic Tee", 2, 499.0)
        assert line["sellerId"] == shop.seller_id

    async def test_delete_other_sellers_store(self, client, shop):
        response = await client.delete(
            f"{API}/seller/store/{shop.store_id}", headers=auth(shop.pending_seller_token)
        )
        assert response.status_code == 404


class TestSellerProducts:
    async def test_create_product(self, client, shop):
        response = await client.post(
            f"{API}/seller/products",
            json=_listing(
                shop,
                color=shop.blue_id,
                tags=[shop.tag_id],
                images=["https://cdn.example.com/linen.jpg"],
            ),
            headers=auth(shop.seller_token),
        )

        assert response.status_code == 201
        product = response.json()["data"]
        assert product["name"] == "Linen Shirt"
        assert product["slug"] == "linen-shirt"
        assert product["price"] == 899.0
        assert product["storeId"] == shop.store_id
        assert product["color"]["hexCode"] == "#0000FF"
        assert [t["name"] for t in product["tags"]] == ["summer"]
        assert product["images"] == ["https://cdn.example.com/linen.jpg"]

        listed = await client.get(f"{API}/products/{product['id']}")
        assert listed.status_code == 200

    async def test_category_required(self, client, shop):
        body = _listing(shop)
        del body["category"]

        response = await client.post(
            f"{API}/seller/products", json=body, headers=auth(shop.seller_token)
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Category is required"

    async def test_invalid_brand(self, client, shop):
        response = await client.post(
            f"{API}/seller/products",
            json=_listing(shop, brand=9999),
            headers=auth(shop.seller_token),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid brand"

    async def test_non_positive_price(self, client, shop):
        response = await client.post(
            f"{API}/seller/products",
            json=_listing(shop, price="0"),
            headers=auth(shop.seller_token),
        )
        assert response.status_code == 400

    async def test_requires_store(self, client, shop):
        response = await client.post(
            f"{API}/seller/products",
            json=_listing(shop),
            headers=auth(shop.pending_seller_token),
        )
        assert response.status_code == 404

    async def test_list_includes_inactive(self, client, shop):
        response = await client.get(f"{API}/seller/products", headers=auth(shop.seller_token))

        names = {p["name"] for p in response.json()["data"]}
        assert names == {"Classic Tee", "Warm Hoodie", "Old Jacket"}

    async def test_update_product(self, client, shop):
        response = await client.patch(
            f"{API}/seller/products/{shop.hoodie_id}",
            json={"price": "1199.00", "stock": 8, "tags": [shop.tag_id]},
            headers=auth(shop.seller_token),
        )

        product = response.json()["data"]
        assert product["price"] == 1199.0
        assert product["stock"] == 8
        assert [t["id"] for t in product["tags"]] == [shop.tag_id]

    async def test_reactivate_product(self, client, shop):
        response = await client.patch(
            f"{API}/seller/products/{shop.jacket_id}",
            json={"isActive": True},
            headers=auth(shop.seller_token),
        )

        assert response.json()["data"]["isActive"] is True
        assert (await client.get(f"{API}/products/{shop.jacket_id}")).status_code == 200

    async def test_other_sellers_product(self, client, shop):
        await client.post(
            f"{API}/seller/store",
            json={"storeName": "Pat's Picks"},
            headers=auth(shop.pending_seller_token),
        )

        response = await client.patch(
            f"{API}/seller/products/{shop.tee_id}",
            json={"stock": 0},
            headers=auth(shop.pending_seller_token),
        )
        assert response.status_code == 404

    async def test_delete_product_cleans_references(self, client, shop):
        token = shop.customer_token
        await client.post(
            f"{API}/cart", json={"productId": shop.tee_id, "quantity": 1}, headers=auth(token)
        )
        order = (
            await client.post(
                f"{API}/checkout", json={"shippingAddress": SHIPPING}, headers=auth(token)
            )
        ).json()["data"]
        await client.post(
            f"{API}/cart", json={"productId": shop.tee_id, "quantity": 2}, headers=auth(token)
        )

        response = await client.delete(
            f"{API}/seller/products/{shop.tee_id}", headers=auth(shop.seller_token)
        )
        assert response.status_code == 200

        cart = (await client.get(f"{API}/cart", headers=auth(token))).json()["data"]
        assert cart["items"] == []
        assert (cart["totalItems"], cart["totalPrice"]) == (0, 0)

        assert (await client.get(f"{API}/products/{shop.tee_id}")).status_code == 404

        kept = (await client.get(f"{API}/orders/{order['id']}", headers=auth(token))).json()
        line = kept["data"]["items"][0]
        assert (line["productId"], line["productName"]) == (None, "Classic Tee")


class TestSellerAttributes:
    async def test_list_colors(self, client, shop):
        response = await client.get(f"{API}/seller/colors", headers=auth(shop.seller_token))

        assert [c["name"] for c in response.json()["data"]] == ["Blue", "Red"]

    async def test_sizes_filtered_by_type(self, client, shop):
        clothing = await client.get(
            f"{API}/seller/sizes", params={"type": "clothing"}, headers=auth(shop.seller_token)
        )
        shoes = await client.get(
            f"{API}/seller/sizes", params={"type": "shoes"}, headers=auth(shop.seller_token)
        )

        assert [s["name"] for s in clothing.json()["data"]] == ["M"]
        assert shoes.json()["data"] == []

    async def test_unknown_kind(self, client, shop):
        response = await client.get(f"{API}/seller/widgets", headers=auth(shop.seller_token))
        assert response.status_code == 400

    async def test_create_brand(self, client, shop):
        created = await client.post(
            f"{API}/seller/brands", json={"name": "Zephyr"}, headers=auth(shop.seller_token)
        )
        duplicate = await client.post(
            f"{API}/seller/brands", json={"name": "Acme"}, headers=auth(shop.seller_token)
        )

        assert created.status_code == 201
        assert duplicate.status_code == 400

        brands = await client.get(f"{API}/seller/brands", headers=auth(shop.seller_token))
        assert [b["name"] for b in brands.json()["data"]] == ["Acme", "Zephyr"]
