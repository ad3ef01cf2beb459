import json
from decimal import Decimal

from django.contrib.auth.models import User
from django.test import TestCase
from django.urls import reverse

from .models import Product


class JsonApiTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="owner", password="password")
        self.client.force_login(self.user)
        self.product = Product.objects.create(
            owner=self.user, name="Widget", selling_price=Decimal("100"), current_stock=Decimal("50")
        )

    def post(self, name, payload=None, **kwargs):
        return self.client.post(
            reverse(f"comptoir:{name}", kwargs=kwargs or None),
            data=json.dumps(payload or {}),
            content_type="application/json",
        )

    def test_invoice_round_trip(self):
        response = self.post("documents", {
            "status": "sent",
            "items": [{"product": self.product.pk, "quantity": 5, "unit_price": 100, "tax_rate": 19}],
        })
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["ok"])
        doc = body["data"]
        self.assertEqual(doc["total"], "595.00")
        self.assertEqual(doc["items"][0]["description"], "Widget")

        response = self.post("document_record_payment", {"amount": "95"}, pk=doc["id"])
        self.assertEqual(response.json()["data"]["amount_due"], "500.00")
        self.assertEqual(response.json()["data"]["status"], "partial")

        response = self.client.get(reverse("comptoir:product_movements", kwargs={"pk": self.product.pk}))
        movements = response.json()["data"]
        self.assertEqual(len(movements), 1)
        self.assertEqual(movements[0]["product_name"], "Widget")

        listing = self.client.get(reverse("comptoir:documents"), {"type": "invoice"}).json()
        self.assertEqual([d["id"] for d in listing["data"]], [doc["id"]])

    def test_validation_errors_are_400_with_field_errors(self):
        response = self.post("documents", {"items": [{"quantity": "-3"}]})
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertFalse(body["ok"])
        self.assertIn("items[0].quantity", body["errors"])

    def test_bad_json(self):
        response = self.client.post(reverse("comptoir:documents"), data="{oops", content_type="application/json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Invalid JSON body")

    def test_unknown_document_is_404(self):
        response = self.client.get(reverse("comptoir:document_detail", kwargs={"pk": 424242}))
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.json()["ok"])

    def test_anonymous_is_401(self):
        self.client.logout()
        response = self.client.get(reverse("comptoir:documents"))
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "User not authenticated")

    def test_order_and_delivery_routes_fix_the_type(self):
        order = self.post("orders", {"type": "invoice", "items": [{"quantity": 1, "unit_price": 10}]}).json()["data"]
        self.assertEqual(order["type"], "order")
        self.assertTrue(order["reference"].startswith("CMD-"))

        self.post("deliveries", {"items": []})
        self.post("documents", {"items": []})
        listing = self.client.get(reverse("comptoir:deliveries"), {"type": "invoice"}).json()["data"]
        self.assertEqual([d["type"] for d in listing], ["delivery"])

    def test_wrong_method(self):
        response = self.client.get(reverse("comptoir:document_delete", kwargs={"pk": 1}))
        self.assertEqual(response.status_code, 405)

    def test_quote_conversion_endpoint(self):
        quote = self.post("documents", {"type": "quote", "items": [{"quantity": 1, "unit_price": 10}]}).json()["data"]
        response = self.post("quote_convert", pk=quote["id"])
        self.assertEqual(response.status_code, 200)
        invoice = response.json()["data"]
        self.assertEqual(invoice["type"], "invoice")
        self.assertEqual(invoice["converted_from"], quote["id"])

    def test_stock_movement_endpoint(self):
        response = self.post("stock_movements", {"product": self.product.pk, "type": "in", "quantity": "2.5"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["stock_after"], "52.500000")

    def test_products_and_low_stock_filter(self):
        self.post("products", {"name": "Nearly gone", "current_stock": "1", "min_stock_level": "3"})
        low = self.client.get(reverse("comptoir:products"), {"low_stock": "1"}).json()["data"]
        self.assertEqual([p["name"] for p in low], ["Nearly gone"])
        self.assertTrue(low[0]["is_low_stock"])

    def test_dashboard(self):
        response = self.client.get(reverse("comptoir:dashboard"), {"period": "week"})
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["period"], "week")
        self.assertEqual(data["stock"]["total_products"], 1)

    def test_billing_settings(self):
        response = self.post("billing_settings", {"invoice_number_format": "F{YEAR}-{SEQUENCE}"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["invoice_number_format"], "F{YEAR}-{SEQUENCE}")
        doc = self.post("documents", {}).json()["data"]
        self.assertTrue(doc["reference"].startswith("F"))
        self.assertTrue(doc["reference"].endswith("-0001"))
