"""
Invoice API tests
Testing: invoice, line item and payment endpoints, error mapping and roles
"""
from decimal import Decimal


def create_invoice(client, headers, **overrides):
    body = {
        "contact_id": 1,
        "due_date": "2030-01-31",
        "tax_rate": "0.1",
        "line_items": [{"description": "Portrait session", "quantity": "2", "unit_price": "50.00"}],
    }
    body.update(overrides)
    response = client.post("/api/invoices", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["invoice"]


class TestAuth:
    """Token checks"""

    def test_missing_token(self, client):
        response = client.get("/api/invoices")
        assert response.status_code == 401

    def test_invalid_token(self, client):
        response = client.get("/api/invoices", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 403


class TestInvoiceEndpoints:
    """Invoice CRUD and lifecycle"""

    def test_full_payment_flow(self, client, staff_headers):
        invoice = create_invoice(client, staff_headers)
        assert invoice["status"] == "DRAFT"
        assert Decimal(invoice["total"]) == Decimal("110.00")
        invoice_id = invoice["id"]

        sent = client.post(f"/api/invoices/{invoice_id}/send", headers=staff_headers)
        assert sent.status_code == 200
        assert sent.json()["status"] == "SENT"
        assert sent.json()["previous_status"] == "DRAFT"

        paid = client.post(
            f"/api/invoices/{invoice_id}/payments",
            json={"amount": "60.00", "method": "CASH"},
            headers=staff_headers,
        )
        assert paid.status_code == 201
        data = paid.json()
        assert data["status"] == "PARTIALLY_PAID"
        assert Decimal(data["invoice"]["amount_due"]) == Decimal("50.00")
        assert Decimal(data["payment"]["amount"]) == Decimal("60.00")

        second = client.post(
            f"/api/invoices/{invoice_id}/payments",
            json={"amount": "50.00", "method": "CARD"},
            headers=staff_headers,
        ).json()
        assert second["status"] == "PAID"
        assert Decimal(second["invoice"]["amount_due"]) == Decimal("0")

        deleted = client.delete(
            f"/api/invoices/{invoice_id}/payments/{second['payment']['id']}",
            headers=staff_headers,
        )
        assert deleted.status_code == 200
        assert deleted.json()["status"] == "PARTIALLY_PAID"
        assert deleted.json()["previous_status"] == "PAID"

        detail = client.get(f"/api/invoices/{invoice_id}", headers=staff_headers).json()
        assert len(detail["line_items"]) == 1
        assert len(detail["payments"]) == 1
        assert detail["activities"][-1]["type"] == "INVOICE_CREATED"

    def test_list_and_filter(self, client, staff_headers):
        first = create_invoice(client, staff_headers, contact_id=1)
        create_invoice(client, staff_headers, contact_id=2)
        client.post(f"/api/invoices/{first['id']}/send", headers=staff_headers)

        everything = client.get("/api/invoices", headers=staff_headers).json()
        assert everything["total"] == 2

        sent = client.get("/api/invoices", params={"status": "SENT"}, headers=staff_headers).json()
        assert [inv["id"] for inv in sent["invoices"]] == [first["id"]]

        by_contact = client.get("/api/invoices", params={"contact_id": 2}, headers=staff_headers).json()
        assert by_contact["total"] == 1

    def test_update_draft(self, client, staff_headers):
        invoice = create_invoice(client, staff_headers)

        response = client.put(
            f"/api/invoices/{invoice['id']}",
            json={"tax_rate": "0.2"},
            headers=staff_headers,
        )

        assert response.status_code == 200
        assert Decimal(response.json()["invoice"]["total"]) == Decimal("120.00")

    def test_contact_summary(self, client, staff_headers):
        create_invoice(client, staff_headers, contact_id=5)
        response = client.get("/api/invoices/contact/5/summary", headers=staff_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["total_invoices"] == 1
        assert data["by_status"]["DRAFT"]["count"] == 1

    def test_activities(self, client, staff_headers):
        invoice = create_invoice(client, staff_headers)
        client.post(f"/api/invoices/{invoice['id']}/send", headers=staff_headers)

        response = client.get(f"/api/invoices/{invoice['id']}/activities", headers=staff_headers)

        types = [a["type"] for a in response.json()["activities"]]
        assert "INVOICE_SENT" in types
        assert types[-1] == "INVOICE_CREATED"


class TestLineItemEndpoints:
    """Line item routes"""

    def test_add_update_remove(self, client, staff_headers):
        invoice = create_invoice(client, staff_headers, line_items=[])
        invoice_id = invoice["id"]

        added = client.post(
            f"/api/invoices/{invoice_id}/line-items",
            json={"description": "Album", "unit_price": "80.00"},
            headers=staff_headers,
        )
        assert added.status_code == 201
        item = added.json()["line_item"]
        assert item["sort_order"] == 0
        assert Decimal(added.json()["invoice"]["total"]) == Decimal("88.00")

        updated = client.put(
            f"/api/invoices/{invoice_id}/line-items/{item['id']}",
            json={"quantity": "2"},
            headers=staff_headers,
        )
        assert updated.status_code == 200
        assert Decimal(updated.json()["line_item"]["total"]) == Decimal("160.00")

        removed = client.delete(f"/api/invoices/{invoice_id}/line-items/{item['id']}", headers=staff_headers)
        assert removed.status_code == 200
        assert Decimal(removed.json()["invoice"]["total"]) == Decimal("0")

    def test_locked_after_send_returns_400(self, client, staff_headers):
        invoice = create_invoice(client, staff_headers)
        client.post(f"/api/invoices/{invoice['id']}/send", headers=staff_headers)

        response = client.post(
            f"/api/invoices/{invoice['id']}/line-items",
            json={"description": "Extra", "unit_price": "5.00"},
            headers=staff_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_state"

    def test_blank_description_returns_422(self, client, staff_headers):
        invoice = create_invoice(client, staff_headers)

        response = client.post(
            f"/api/invoices/{invoice['id']}/line-items",
            json={"description": "   ", "unit_price": "5.00"},
            headers=staff_headers,
        )

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    def test_oversized_line_total_returns_422(self, client, staff_headers):
        invoice = create_invoice(client, staff_headers)

        response = client.post(
            f"/api/invoices/{invoice['id']}/line-items",
            json={"description": "Huge", "quantity": "99999999.99", "unit_price": "9999999999.99"},
            headers=staff_headers,
        )

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"
        detail = client.get(f"/api/invoices/{invoice['id']}", headers=staff_headers).json()
        assert len(detail["line_items"]) == 1
        assert Decimal(detail["total"]) == Decimal("110.00")


class TestErrors:
    """Error mapping"""

    def test_second_invoice_for_booking_returns_400(self, client, staff_headers):
        create_invoice(client, staff_headers, booking_id=9)

        response = client.post(
            "/api/invoices",
            json={"contact_id": 1, "booking_id": 9, "due_date": "2030-01-31"},
            headers=staff_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_state"

    def test_unknown_invoice_returns_404(self, client, staff_headers):
        response = client.get("/api/invoices/999", headers=staff_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_payment_on_draft_returns_400(self, client, staff_headers):
        invoice = create_invoice(client, staff_headers)
        response = client.post(
            f"/api/invoices/{invoice['id']}/payments",
            json={"amount": "10.00"},
            headers=staff_headers,
        )
        assert response.status_code == 400

    def test_sub_cent_payment_returns_422(self, client, staff_headers):
        invoice = create_invoice(client, staff_headers)
        client.post(f"/api/invoices/{invoice['id']}/send", headers=staff_headers)
        response = client.post(
            f"/api/invoices/{invoice['id']}/payments",
            json={"amount": "10.001"},
            headers=staff_headers,
        )
        assert response.status_code == 422


class TestOperatorEndpoints:
    """Admin / manager only routes"""

    def test_status_override_requires_operator(self, client, staff_headers, admin_headers):
        invoice = create_invoice(client, staff_headers)

        denied = client.patch(
            f"/api/invoices/{invoice['id']}/status",
            json={"status": "PAID"},
            headers=staff_headers,
        )
        assert denied.status_code == 403

        allowed = client.patch(
            f"/api/invoices/{invoice['id']}/status",
            json={"status": "PAID"},
            headers=admin_headers,
        )
        assert allowed.status_code == 200
        assert allowed.json()["status"] == "PAID"
        assert allowed.json()["previous_status"] == "DRAFT"

    def test_delete_invoice(self, client, staff_headers, admin_headers):
        invoice = create_invoice(client, staff_headers)

        assert client.delete(f"/api/invoices/{invoice['id']}", headers=staff_headers).status_code == 403
        assert client.delete(f"/api/invoices/{invoice['id']}", headers=admin_headers).status_code == 204
        assert client.get(f"/api/invoices/{invoice['id']}", headers=staff_headers).status_code == 404

    def test_overdue_sweep(self, client, staff_headers, admin_headers):
        invoice = create_invoice(client, staff_headers, due_date="2020-01-31")
        client.post(f"/api/invoices/{invoice['id']}/send", headers=staff_headers)

        response = client.post("/api/invoices/overdue/mark", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["invoice_ids"] == [invoice["id"]]
        detail = client.get(f"/api/invoices/{invoice['id']}", headers=staff_headers).json()
        assert detail["status"] == "OVERDUE"
