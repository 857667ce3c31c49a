import threading
import unittest
from unittest import mock

from fastapi.testclient import TestClient

from api_case import ApiTestCase

from main import app
from models.checkout import Checkout, CheckoutStatus
from models.order import Order
from utils.stock import take_stock


class CheckoutTestCase(ApiTestCase):

    def setUp(self):
        super().setUp()
        self.category_id = self.create_category()
        self.product_id = self.create_product(self.category_id, stock=5)

    def _checkout_rows(self):
        with self.SessionLocal() as db:
            return db.query(Checkout).order_by(Checkout.id).all()

    def test_cart_requires_login(self):
        self.assertEqual(self.client.get("/api/checkout").status_code, 401)
        response = self.client.post("/api/checkout", json={"productId": self.product_id, "quantity": 1})
        self.assertEqual(response.status_code, 401)

    def test_add_and_list(self):
        headers = self.customer_headers()
        response = self.client.post(
            "/api/checkout", json={"productId": self.product_id, "quantity": 2}, headers=headers
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Product added to cart successfully")

        cart = self.client.get("/api/checkout", headers=headers).json()
        self.assertEqual(len(cart), 1)
        self.assertEqual(cart[0]["productId"], self.product_id)
        self.assertEqual(cart[0]["quantity"], 2)
        self.assertEqual(cart[0]["status"], 0)
        self.assertEqual(cart[0]["product"], {"namaBarang": "Beras 5kg", "hargaBarang": 65000.0, "picUrl": "beras.png"})

    def test_missing_fields_are_rejected(self):
        headers = self.customer_headers()
        self.assertEqual(self.client.post("/api/checkout", json={"quantity": 1}, headers=headers).status_code, 400)
        self.assertEqual(
            self.client.post("/api/checkout", json={"productId": self.product_id}, headers=headers).status_code, 400
        )
        self.assertEqual(
            self.client.post("/api/checkout", json={"productId": self.product_id, "quantity": 0},
                             headers=headers).status_code,
            400,
        )
        self.assertEqual(self._checkout_rows(), [])

    def test_unknown_product(self):
        headers = self.customer_headers()
        response = self.client.post("/api/checkout", json={"productId": 999, "quantity": 1}, headers=headers)
        self.assertEqual(response.status_code, 404)

    def test_quantity_above_stock_is_rejected_without_a_row(self):
        headers = self.customer_headers()
        response = self.client.post(
            "/api/checkout", json={"productId": self.product_id, "quantity": 6}, headers=headers
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Insufficient stock")
        self.assertEqual(self._checkout_rows(), [])

    def test_repeated_adds_merge_into_one_row(self):
        headers = self.customer_headers()
        body = {"productId": self.product_id, "quantity": 2}
        self.client.post("/api/checkout", json=body, headers=headers)
        self.client.post("/api/checkout", json=body, headers=headers)

        rows = self._checkout_rows()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].quantity, 4)

        # merged total would exceed the stock of 5
        response = self.client.post("/api/checkout", json=body, headers=headers)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self._checkout_rows()[0].quantity, 4)

    def test_cart_only_lists_own_in_cart_rows(self):
        budi = self.customer_headers("budi@x.com")
        siti = self.customer_headers("siti@x.com")
        self.client.post("/api/checkout", json={"productId": self.product_id, "quantity": 1}, headers=budi)

        self.assertEqual(self.client.get("/api/checkout", headers=siti).json(), [])
        self.assertEqual(len(self.client.get("/api/checkout", headers=budi).json()), 1)

    def test_update_quantity(self):
        headers = self.customer_headers()
        line = self.client.post(
            "/api/checkout", json={"productId": self.product_id, "quantity": 1}, headers=headers
        ).json()["checkout"]

        response = self.client.patch(f"/api/checkout/{line['id']}", json={"quantity": 3}, headers=headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["checkout"]["quantity"], 3)

        response = self.client.put(f"/api/checkout/{line['id']}", json={"quantity": 50}, headers=headers)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.client.get(f"/api/checkout/{line['id']}", headers=headers).json()["quantity"], 3)

    def test_remove_from_cart(self):
        budi = self.customer_headers("budi@x.com")
        siti = self.customer_headers("siti@x.com")
        line = self.client.post(
            "/api/checkout", json={"productId": self.product_id, "quantity": 1}, headers=budi
        ).json()["checkout"]

        self.assertEqual(self.client.delete("/api/checkout/999", headers=budi).status_code, 404)
        self.assertEqual(self.client.delete(f"/api/checkout/{line['id']}", headers=siti).status_code, 404)

        response = self.client.delete(f"/api/checkout/{line['id']}", headers=budi)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self._checkout_rows(), [])


class OrderTestCase(ApiTestCase):

    def setUp(self):
        super().setUp()
        self.category_id = self.create_category()
        self.product_id = self.create_product(self.category_id, stock=5)

    def _add(self, headers, quantity=1):
        response = self.client.post(
            "/api/checkout", json={"productId": self.product_id, "quantity": quantity}, headers=headers
        )
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()["checkout"]["id"]

    def _order(self, headers, checkout_id, payment_method="transfer"):
        return self.client.post(
            "/api/orders", json={"checkoutId": checkout_id, "paymentMethod": payment_method}, headers=headers
        )

    def test_place_order(self):
        headers = self.customer_headers()
        checkout_id = self._add(headers, quantity=2)

        response = self._order(headers, checkout_id)
        self.assertEqual(response.status_code, 200)
        order = response.json()["order"]
        self.assertEqual(order["status"], "PENDING")
        self.assertEqual(order["paymentStatus"], "UNPAID")
        self.assertEqual(order["paymentMethod"], "transfer")
        self.assertEqual(order["checkoutId"], checkout_id)
        self.assertEqual(order["unitPrice"], 65000.0)
        self.assertEqual(order["checkout"]["product"]["namaBarang"], "Beras 5kg")

        # the cart line is consumed and the stock is taken
        self.assertEqual(self.client.get("/api/checkout", headers=headers).json(), [])
        with self.SessionLocal() as db:
            self.assertEqual(db.get(Checkout, checkout_id).status, CheckoutStatus.ORDERED)
        self.assertEqual(self.get_product_row(self.product_id).stock_quantity, 3)

    def test_order_requires_fields(self):
        headers = self.customer_headers()
        checkout_id = self._add(headers)
        self.assertEqual(self.client.post("/api/orders", json={"checkoutId": checkout_id}, headers=headers).status_code, 400)
        self.assertEqual(self._order(headers, checkout_id, payment_method="").status_code, 400)

    def test_order_on_someone_elses_checkout_fails(self):
        budi = self.customer_headers("budi@x.com")
        siti = self.customer_headers("siti@x.com")
        checkout_id = self._add(budi)

        response = self._order(siti, checkout_id)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Invalid checkout ID")
        with self.SessionLocal() as db:
            self.assertEqual(db.query(Order).count(), 0)

    def test_checkout_can_only_be_ordered_once(self):
        headers = self.customer_headers()
        checkout_id = self._add(headers)
        self.assertEqual(self._order(headers, checkout_id).status_code, 200)
        self.assertEqual(self._order(headers, checkout_id).status_code, 400)
        self.assertEqual(self.client.delete(f"/api/checkout/{checkout_id}", headers=headers).status_code, 400)

    def test_order_fails_when_stock_ran_out(self):
        budi = self.customer_headers("budi@x.com")
        siti = self.customer_headers("siti@x.com")
        budi_line = self._add(budi, quantity=4)
        siti_line = self._add(siti, quantity=4)

        self.assertEqual(self._order(budi, budi_line).status_code, 200)
        response = self._order(siti, siti_line)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Insufficient stock")
        self.assertEqual(self.get_product_row(self.product_id).stock_quantity, 1)

    def test_simultaneous_orders_cannot_oversell(self):
        budi = self.customer_headers("budi@x.com")
        siti = self.customer_headers("siti@x.com")
        lines = [(budi, self._add(budi, quantity=4)), (siti, self._add(siti, quantity=4))]
        barrier = threading.Barrier(2, timeout=10)

        def take_after_both_checked(db, product_id, quantity):
            # both requests have validated their cart line before either touches the stock
            barrier.wait()
            return take_stock(db, product_id, quantity)

        statuses = []

        def place(headers, checkout_id):
            with TestClient(app) as client:
                response = client.post(
                    "/api/orders", json={"checkoutId": checkout_id, "paymentMethod": "transfer"}, headers=headers
                )
                statuses.append(response.status_code)

        with mock.patch("routes.orders.take_stock", side_effect=take_after_both_checked):
            threads = [threading.Thread(target=place, args=line) for line in lines]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join(timeout=30)

        self.assertEqual(sorted(statuses), [200, 400])
        self.assertEqual(self.get_product_row(self.product_id).stock_quantity, 1)
        with self.SessionLocal() as db:
            self.assertEqual(db.query(Order).count(), 1)

    def test_list_and_show_orders(self):
        budi = self.customer_headers("budi@x.com")
        siti = self.customer_headers("siti@x.com")
        order_id = self._order(budi, self._add(budi)).json()["order"]["id"]

        self.assertEqual([o["id"] for o in self.client.get("/api/orders", headers=budi).json()], [order_id])
        self.assertEqual(self.client.get("/api/orders", headers=siti).json(), [])
        self.assertEqual(self.client.get(f"/api/orders/{order_id}", headers=budi).status_code, 200)
        self.assertEqual(self.client.get(f"/api/orders/{order_id}", headers=siti).status_code, 404)
        self.assertEqual(self.client.get(f"/api/orders/{order_id}", headers=self.admin_headers()).status_code, 200)

    def test_status_update_accepts_only_known_values(self):
        customer = self.customer_headers()
        admin = self.admin_headers()
        order_id = self._order(customer, self._add(customer)).json()["order"]["id"]

        response = self.client.patch(f"/api/orders/{order_id}", json={"status": "LOST"}, headers=admin)
        self.assertEqual(response.status_code, 400)
        with self.SessionLocal() as db:
            self.assertEqual(db.get(Order, order_id).status.value, "PENDING")

        response = self.client.put(f"/api/orders/{order_id}", json={"status": "PAID"}, headers=admin)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["order"]["status"], "PAID")
        self.assertEqual(response.json()["order"]["paymentStatus"], "PAID")

    def test_status_has_no_transition_graph(self):
        customer = self.customer_headers()
        admin = self.admin_headers()
        order_id = self._order(customer, self._add(customer)).json()["order"]["id"]

        for status in ("DELIVERED", "PENDING", "SHIPPED"):
            response = self.client.patch(f"/api/orders/{order_id}", json={"status": status}, headers=admin)
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response.json()["order"]["status"], status)

    def test_status_update_is_admin_only(self):
        customer = self.customer_headers()
        order_id = self._order(customer, self._add(customer)).json()["order"]["id"]
        response = self.client.patch(f"/api/orders/{order_id}", json={"status": "PAID"}, headers=customer)
        self.assertEqual(response.status_code, 403)

        response = self.client.patch("/api/orders/999", json={"status": "PAID"}, headers=self.admin_headers())
        self.assertEqual(response.status_code, 404)

    def test_cancel_returns_stock_and_reopen_takes_it_again(self):
        customer = self.customer_headers()
        admin = self.admin_headers()
        order_id = self._order(customer, self._add(customer, quantity=2)).json()["order"]["id"]
        self.assertEqual(self.get_product_row(self.product_id).stock_quantity, 3)

        self.client.patch(f"/api/orders/{order_id}", json={"status": "CANCELED"}, headers=admin)
        self.assertEqual(self.get_product_row(self.product_id).stock_quantity, 5)

        # cancelling twice does not restock twice
        self.client.patch(f"/api/orders/{order_id}", json={"status": "CANCELED"}, headers=admin)
        self.assertEqual(self.get_product_row(self.product_id).stock_quantity, 5)

        self.client.patch(f"/api/orders/{order_id}", json={"status": "PENDING"}, headers=admin)
        self.assertEqual(self.get_product_row(self.product_id).stock_quantity, 3)

    def test_transactions_report(self):
        customer = self.customer_headers()
        admin = self.admin_headers()
        self._order(customer, self._add(customer, quantity=2))

        self.assertEqual(self.client.get("/api/transaction", headers=customer).status_code, 403)

        report = self.client.get("/api/transaction", headers=admin).json()
        self.assertEqual(report["total_orders"], 1)
        self.assertEqual(report["total_amount"], 130000.0)
        item = report["items"][0]
        self.assertEqual(item["product_name"], "Beras 5kg")
        self.assertEqual(item["quantity"], 2)
        self.assertEqual(item["status"], "PENDING")

        filtered = self.client.get("/api/transaction", params={"categoryId": 999}, headers=admin).json()
        self.assertEqual(filtered["items"], [])
        self.assertEqual(
            self.client.get("/api/transaction", params={"date_from": "yesterday"}, headers=admin).status_code, 400
        )


class ShoppingScenarioTestCase(ApiTestCase):

    def test_register_login_browse_add_and_order(self):
        category_id = self.create_category("Sembako")
        product_id = self.create_product(category_id, stock=3)

        register = self.client.post(
            "/api/register", json={"nama": "Budi", "email": "budi@x.com", "password": "secret"}
        )
        self.assertEqual(register.status_code, 200)

        login = self.login("budi@x.com")
        self.assertEqual(login.status_code, 200)
        self.assertTrue(login.json()["token"])

        products = self.client.get("/api/products").json()
        self.assertEqual([p["category"]["nama"] for p in products], ["Sembako"])

        # from here on only the session cookie identifies the user
        added = self.client.post("/api/checkout", json={"productId": product_id, "quantity": 1})
        self.assertEqual(added.status_code, 200)

        cart = self.client.get("/api/checkout").json()
        self.assertEqual(len(cart), 1)

        order = self.client.post("/api/orders", json={"checkoutId": cart[0]["id"], "paymentMethod": "transfer"})
        self.assertEqual(order.status_code, 200)
        self.assertEqual(order.json()["order"]["status"], "PENDING")
        self.assertEqual(self.client.get("/api/checkout").json(), [])


if __name__ == "__main__":
    unittest.main()
