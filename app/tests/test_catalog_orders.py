import pytest


async def product_stock(client, product_id: int) -> int:
    response = await client.get(f"/catalog/products/{product_id}")
    return response.json()["stock"]


@pytest.mark.integration
class TestCatalog:

    @pytest.mark.asyncio
    async def test_create_and_browse_publicly(self, test_client, operator, create_product_factory):
        nozzle = await create_product_factory(operator, name="Ugello antideriva")
        await create_product_factory(operator, name="Drone T40", category="DRONE", price_cents=2_500_000)

        everything = await test_client.get("/catalog/products")
        drones = await test_client.get("/catalog/products", params={"category": "DRONE"})
        search = await test_client.get("/catalog/products", params={"q": "ugello"})
        detail = await test_client.get(f"/catalog/products/{nozzle['id']}")

        assert nozzle["vendor_org_id"] == operator["organization_id"]
        assert [p["name"] for p in everything.json()] == ["Drone T40", "Ugello antideriva"]
        assert [p["name"] for p in drones.json()] == ["Drone T40"]
        assert [p["id"] for p in search.json()] == [nozzle["id"]]
        assert detail.json()["price_cents"] == 1500

    @pytest.mark.asyncio
    async def test_inactive_products_hidden_from_listing(self, test_client, operator, create_product_factory):
        await create_product_factory(operator, is_active=False)

        response = await test_client.get("/catalog/products")

        assert response.json() == []

    @pytest.mark.asyncio
    async def test_duplicate_sku(self, test_client, operator, create_product_factory):
        await create_product_factory(operator, sku="NZ-01")

        response = await test_client.post(
            "/catalog/products",
            json={"sku": "NZ-01", "name": "Copia", "category": "SPARE_PART", "price_cents": 100},
            headers=operator["headers"],
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_buyers_cannot_sell(self, test_client, buyer):
        response = await test_client.post(
            "/catalog/products",
            json={"sku": "X-1", "name": "Nope", "category": "ACCESSORY", "price_cents": 100},
            headers=buyer["headers"],
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_update_product(self, test_client, operator, operator_2, create_product_factory):
        product = await create_product_factory(operator)
        url = f"/catalog/products/{product['id']}"

        updated = await test_client.put(url, json={"price_cents": 1800, "stock": 3}, headers=operator["headers"])
        foreign = await test_client.put(url, json={"price_cents": 1}, headers=operator_2["headers"])

        assert updated.json()["price_cents"] == 1800
        assert updated.json()["stock"] == 3
        assert foreign.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_product(self, test_client):
        response = await test_client.get("/catalog/products/9999")

        assert response.status_code == 404


@pytest.mark.integration
class TestCart:

    @pytest.mark.asyncio
    async def test_add_merges_quantities(self, test_client, buyer, operator, create_product_factory):
        product = await create_product_factory(operator, price_cents=1500)

        await test_client.post("/cart/items", json={"product_id": product["id"], "quantity": 2}, headers=buyer["headers"])
        response = await test_client.post("/cart/items", json={"product_id": product["id"]}, headers=buyer["headers"])

        cart = response.json()
        assert len(cart["items"]) == 1
        assert cart["items"][0]["quantity"] == 3
        assert cart["items"][0]["line_total_cents"] == 4500
        assert cart["total_cents"] == 4500
        assert cart["currency"] == "EUR"

    @pytest.mark.asyncio
    async def test_update_and_remove(self, test_client, buyer, operator, create_product_factory):
        first = await create_product_factory(operator, price_cents=1000)
        second = await create_product_factory(operator, price_cents=250)
        await test_client.post("/cart/items", json={"product_id": first["id"]}, headers=buyer["headers"])
        cart = (await test_client.post(
            "/cart/items", json={"product_id": second["id"], "quantity": 4}, headers=buyer["headers"]
        )).json()
        first_line, second_line = cart["items"]

        updated = await test_client.put(
            f"/cart/items/{first_line['id']}", json={"quantity": 5}, headers=buyer["headers"]
        )
        assert updated.json()["total_cents"] == 5000 + 1000

        zeroed = await test_client.put(
            f"/cart/items/{second_line['id']}", json={"quantity": 0}, headers=buyer["headers"]
        )
        assert [line["product_id"] for line in zeroed.json()["items"]] == [first["id"]]

        emptied = await test_client.delete(f"/cart/items/{first_line['id']}", headers=buyer["headers"])
        assert emptied.json() == {"items": [], "total_cents": 0, "currency": "EUR"}

    @pytest.mark.asyncio
    async def test_cart_is_per_user(self, test_client, buyer, register_user, operator, create_product_factory):
        other = await register_user()
        product = await create_product_factory(operator)
        cart = (await test_client.post(
            "/cart/items", json={"product_id": product["id"]}, headers=buyer["headers"]
        )).json()

        theirs = await test_client.get("/cart/", headers=other["headers"])
        steal = await test_client.delete(f"/cart/items/{cart['items'][0]['id']}", headers=other["headers"])

        assert theirs.json()["items"] == []
        assert steal.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_or_inactive_product(self, test_client, buyer, operator, create_product_factory):
        inactive = await create_product_factory(operator, is_active=False)

        unknown = await test_client.post("/cart/items", json={"product_id": 9999}, headers=buyer["headers"])
        hidden = await test_client.post("/cart/items", json={"product_id": inactive["id"]}, headers=buyer["headers"])

        assert unknown.status_code == 404
        assert hidden.status_code == 400


@pytest.fixture
def filled_cart(test_client, buyer, operator, create_product_factory):
    async def _fill(quantity=2, stock=10, price_cents=1500):
        product = await create_product_factory(operator, stock=stock, price_cents=price_cents)
        response = await test_client.post(
            "/cart/items", json={"product_id": product["id"], "quantity": quantity}, headers=buyer["headers"]
        )
        assert response.status_code == 200, response.text
        return product

    return _fill


@pytest.mark.integration
class TestCheckoutAndOrders:

    @pytest.mark.asyncio
    async def test_checkout(self, test_client, buyer, filled_cart):
        product = await filled_cart(quantity=2, stock=10, price_cents=1500)

        response = await test_client.post(
            "/orders/checkout", json={"shipping_address": "Via Roma 1, Asti"}, headers=buyer["headers"]
        )

        assert response.status_code == 200
        order = response.json()
        assert order["status"] == "PENDING"
        assert order["buyer_org_id"] == buyer["organization_id"]
        assert order["total_cents"] == 3000
        assert order["shipping_address"] == "Via Roma 1, Asti"
        assert order["items"] == [{
            "product_id": product["id"],
            "product_name": product["name"],
            "unit_price_cents": 1500,
            "quantity": 2,
            "line_total_cents": 3000,
        }]

        assert await product_stock(test_client, product["id"]) == 8
        cart = await test_client.get("/cart/", headers=buyer["headers"])
        assert cart.json()["items"] == []

    @pytest.mark.asyncio
    async def test_order_keeps_price_snapshot(self, test_client, buyer, operator, filled_cart):
        product = await filled_cart(price_cents=1500)
        order = (await test_client.post("/orders/checkout", json={}, headers=buyer["headers"])).json()

        await test_client.put(
            f"/catalog/products/{product['id']}", json={"price_cents": 9999}, headers=operator["headers"]
        )
        again = await test_client.get(f"/orders/{order['id']}", headers=buyer["headers"])

        assert again.json()["items"][0]["unit_price_cents"] == 1500

    @pytest.mark.asyncio
    async def test_empty_cart(self, test_client, buyer):
        response = await test_client.post("/orders/checkout", json={}, headers=buyer["headers"])

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_insufficient_stock_changes_nothing(self, test_client, buyer, filled_cart):
        product = await filled_cart(quantity=5, stock=3)

        response = await test_client.post("/orders/checkout", json={}, headers=buyer["headers"])

        assert response.status_code == 409
        assert await product_stock(test_client, product["id"]) == 3
        cart = await test_client.get("/cart/", headers=buyer["headers"])
        assert cart.json()["items"][0]["quantity"] == 5

    @pytest.mark.asyncio
    async def test_deactivated_product_blocks_checkout(self, test_client, buyer, operator, filled_cart):
        product = await filled_cart()
        await test_client.put(
            f"/catalog/products/{product['id']}", json={"is_active": False}, headers=operator["headers"]
        )

        response = await test_client.post("/orders/checkout", json={}, headers=buyer["headers"])

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_orders_scoped_to_buyer_org(self, test_client, buyer, register_user, admin, filled_cart):
        await filled_cart()
        order = (await test_client.post("/orders/checkout", json={}, headers=buyer["headers"])).json()
        other = await register_user()

        own = await test_client.get("/orders/", headers=buyer["headers"])
        theirs = await test_client.get("/orders/", headers=other["headers"])
        forbidden = await test_client.get(f"/orders/{order['id']}", headers=other["headers"])
        as_admin = await test_client.get("/orders/", headers=admin["headers"])

        assert [o["id"] for o in own.json()] == [order["id"]]
        assert theirs.json() == []
        assert forbidden.status_code == 403
        assert [o["id"] for o in as_admin.json()] == [order["id"]]

    @pytest.mark.asyncio
    async def test_fulfilment_flow(self, test_client, buyer, admin, filled_cart):
        await filled_cart()
        order = (await test_client.post("/orders/checkout", json={}, headers=buyer["headers"])).json()
        url = f"/orders/{order['id']}/status"

        for status in ("PAID", "SHIPPED", "DELIVERED"):
            response = await test_client.put(url, json={"status": status}, headers=admin["headers"])
            assert response.status_code == 200, response.text
            assert response.json()["status"] == status

        cancel = await test_client.put(url, json={"status": "CANCELLED"}, headers=admin["headers"])
        assert cancel.status_code == 409

    @pytest.mark.asyncio
    async def test_invalid_transition(self, test_client, buyer, admin, filled_cart):
        await filled_cart()
        order = (await test_client.post("/orders/checkout", json={}, headers=buyer["headers"])).json()

        response = await test_client.put(
            f"/orders/{order['id']}/status", json={"status": "SHIPPED"}, headers=admin["headers"]
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_buyer_may_only_cancel(self, test_client, buyer, filled_cart):
        product = await filled_cart(quantity=4, stock=10)
        order = (await test_client.post("/orders/checkout", json={}, headers=buyer["headers"])).json()
        url = f"/orders/{order['id']}/status"

        paid = await test_client.put(url, json={"status": "PAID"}, headers=buyer["headers"])
        cancelled = await test_client.put(url, json={"status": "CANCELLED"}, headers=buyer["headers"])

        assert paid.status_code == 403
        assert cancelled.json()["status"] == "CANCELLED"
        assert await product_stock(test_client, product["id"]) == 10

    @pytest.mark.asyncio
    async def test_order_messages(self, test_client, buyer, admin, register_user, filled_cart):
        await filled_cart()
        order = (await test_client.post("/orders/checkout", json={}, headers=buyer["headers"])).json()
        url = f"/orders/{order['id']}/messages"
        outsider = await register_user()

        await test_client.post(url, json={"content": "Consegna al mattino"}, headers=buyer["headers"])
        await test_client.post(url, json={"content": "Ricevuto"}, headers=admin["headers"])

        marked = await test_client.put(f"{url}/read", headers=buyer["headers"])
        thread = (await test_client.get(url, headers=buyer["headers"])).json()
        blocked = await test_client.get(url, headers=outsider["headers"])

        assert marked.json() == {"marked_read": 1}
        assert [(m["message_text"], m["is_read"]) for m in thread] == [
            ("Consegna al mattino", False),
            ("Ricevuto", True),
        ]
        assert thread[1]["sender_name"] == "Platform Admin"
        assert blocked.status_code == 403
