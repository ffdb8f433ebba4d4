"""Customer wishlists."""

from conftest import API, auth


async def _default(client, shop):
    response = await client.get(f"{API}/wishlists/default", headers=auth(shop.customer_token))
    return response.json()["data"]


async def _create(client, shop, name, **extra):
    return await client.post(
        f"{API}/wishlists", json={"name": name, **extra}, headers=auth(shop.customer_token)
    )


async def _add_item(client, shop, wishlist_id, product_id, **extra):
    return await client.post(
        f"{API}/wishlists/{wishlist_id}/items",
        json={"productId": product_id, **extra},
        headers=auth(shop.customer_token),
    )


class TestDefaultWishlist:
    async def test_listing_creates_default(self, client, shop):
        response = await client.get(f"{API}/wishlists", headers=auth(shop.customer_token))

        wishlists = response.json()["data"]["wishlists"]
        assert len(wishlists) == 1
        assert wishlists[0]["isDefault"] is True
        assert wishlists[0]["name"] == "My Wishlist"
        assert wishlists[0]["itemCount"] == 0

    async def test_get_default_is_idempotent(self, client, shop):
        first = await _default(client, shop)
        second = await _default(client, shop)

        assert first["id"] == second["id"]
        assert second["items"] == []

    async def test_explicit_create_conflicts_when_present(self, client, shop):
        created = await client.post(
            f"{API}/wishlists/default", headers=auth(shop.customer_token)
        )
        again = await client.post(f"{API}/wishlists/default", headers=auth(shop.customer_token))

        assert created.status_code == 201
        assert again.status_code == 409

    async def test_default_cannot_be_renamed_or_deleted(self, client, shop):
        default = await _default(client, shop)

        rename = await client.put(
            f"{API}/wishlists/{default['id']}",
            json={"name": "Renamed"},
            headers=auth(shop.customer_token),
        )
        delete = await client.delete(
            f"{API}/wishlists/{default['id']}", headers=auth(shop.customer_token)
        )

        assert rename.status_code == 403
        assert delete.status_code == 403

    async def test_default_description_editable(self, client, shop):
        default = await _default(client, shop)

        response = await client.put(
            f"{API}/wishlists/{default['id']}",
            json={"description": "Things to buy", "isPublic": True},
            headers=auth(shop.customer_token),
        )

        data = response.json()["data"]
        assert data["description"] == "Things to buy"
        assert data["isPublic"] is True


class TestNamedWishlists:
    async def test_create_and_list(self, client, shop):
        response = await _create(client, shop, "Birthday", description="Gift ideas")

        assert response.status_code == 201
        assert response.json()["data"]["isDefault"] is False

        listing = await client.get(f"{API}/wishlists", headers=auth(shop.customer_token))
        wishlists = listing.json()["data"]["wishlists"]
        assert [w["name"] for w in wishlists] == ["My Wishlist", "Birthday"]

    async def test_duplicate_name(self, client, shop):
        await _create(client, shop, "Birthday")
        response = await _create(client, shop, "Birthday")
        assert response.status_code == 409

    async def test_name_required(self, client, shop):
        response = await _create(client, shop, "  ")
        assert response.status_code == 400

    async def test_name_too_long(self, client, shop):
        response = await _create(client, shop, "x" * 101)
        assert response.status_code == 400

    async def test_other_customers_wishlist_not_found(self, client, shop):
        wishlist = (await _create(client, shop, "Private")).json()["data"]

        response = await client.get(
            f"{API}/wishlists/{wishlist['id']}", headers=auth(shop.other_customer_token)
        )
        assert response.status_code == 404

    async def test_delete_with_items(self, client, shop):
        wishlist = (await _create(client, shop, "Later")).json()["data"]
        await _add_item(client, shop, wishlist["id"], shop.tee_id)

        response = await client.delete(
            f"{API}/wishlists/{wishlist['id']}", headers=auth(shop.customer_token)
        )
        assert response.status_code == 200

        gone = await client.get(
            f"{API}/wishlists/{wishlist['id']}", headers=auth(shop.customer_token)
        )
        assert gone.status_code == 404


class TestWishlistItems:
    async def test_add_item(self, client, shop):
        default = await _default(client, shop)

        response = await _add_item(
            client, shop, default["id"], shop.tee_id,
            size=shop.size_id, color=shop.color_id, notes="For summer", priority="high",
        )

        assert response.status_code == 201
        item = response.json()["data"]
        assert item["product"]["id"] == shop.tee_id
        assert item["size"]["name"] == "M"
        assert item["priority"] == "high"
        assert item["notes"] == "For summer"

    async def test_default_priority_is_medium(self, client, shop):
        default = await _default(client, shop)
        response = await _add_item(client, shop, default["id"], shop.tee_id)
        assert response.json()["data"]["priority"] == "medium"

    async def test_duplicate_product(self, client, shop):
        default = await _default(client, shop)
        await _add_item(client, shop, default["id"], shop.tee_id)

        response = await _add_item(client, shop, default["id"], shop.tee_id)
        assert response.status_code == 409

    async def test_inactive_product(self, client, shop):
        default = await _default(client, shop)
        response = await _add_item(client, shop, default["id"], shop.jacket_id)
        assert response.status_code == 404

    async def test_invalid_priority(self, client, shop):
        default = await _default(client, shop)
        response = await _add_item(client, shop, default["id"], shop.tee_id, priority="urgent")
        assert response.status_code == 400

    async def test_items_sorted_by_priority(self, client, shop):
        default = await _default(client, shop)
        other = (await _create(client, shop, "Winter")).json()["data"]
        await _add_item(client, shop, default["id"], shop.tee_id, priority="low")
        await _add_item(client, shop, other["id"], shop.hoodie_id, priority="high")

        response = await client.get(f"{API}/wishlists/items", headers=auth(shop.customer_token))

        items = response.json()["data"]["items"]
        assert [i["priority"] for i in items] == ["high", "low"]

        filtered = await client.get(
            f"{API}/wishlists/items",
            params={"wishlistId": other["id"]},
            headers=auth(shop.customer_token),
        )
        assert [i["product"]["id"] for i in filtered.json()["data"]["items"]] == [shop.hoodie_id]

    async def test_update_item(self, client, shop):
        default = await _default(client, shop)
        item = (await _add_item(client, shop, default["id"], shop.tee_id)).json()["data"]

        response = await client.put(
            f"{API}/wishlists/{default['id']}/items/{item['id']}",
            json={"priority": "high", "color": shop.blue_id, "notes": "Blue one"},
            headers=auth(shop.customer_token),
        )

        data = response.json()["data"]
        assert data["priority"] == "high"
        assert data["color"]["name"] == "Blue"
        assert data["notes"] == "Blue one"

    async def test_remove_item(self, client, shop):
        default = await _default(client, shop)
        item = (await _add_item(client, shop, default["id"], shop.tee_id)).json()["data"]

        response = await client.delete(
            f"{API}/wishlists/{default['id']}/items/{item['id']}",
            headers=auth(shop.customer_token),
        )
        assert response.status_code == 200

        refreshed = await _default(client, shop)
        assert refreshed["items"] == []
        assert refreshed["itemCount"] == 0

    async def test_wishlist_shows_item_count(self, client, shop):
        default = await _default(client, shop)
        await _add_item(client, shop, default["id"], shop.tee_id)
        await _add_item(client, shop, default["id"], shop.hoodie_id)

        response = await client.get(f"{API}/wishlists", headers=auth(shop.customer_token))
        assert response.json()["data"]["wishlists"][0]["itemCount"] == 2
