"""Integration tests for /webhooks/mercadopago endpoint (app/routers/webhooks.py)"""
from unittest.mock import patch

from app.services.reconciliation import ReconciliationAck


IPN_PAYLOAD = {"type": "payment", "data": {"id": "123"}}


class TestMercadoPagoWebhook:
    def test_acknowledges_reconciled_payment(self, unauthenticated_client):
        client, mock_db = unauthenticated_client

        with patch("app.routers.webhooks.reconcile") as mock_reconcile:
            mock_reconcile.return_value = ReconciliationAck(payment_id="123", status="approved", renewal="success")
            response = client.post("/webhooks/mercadopago?topic=payment", json=IPN_PAYLOAD)

        assert response.status_code == 200
        assert response.json() == {
            "received": True,
            "payment_id": "123",
            "status": "approved",
            "renewal": "success",
        }
        args = mock_reconcile.call_args.args
        assert args[0] is mock_db
        assert args[1] == IPN_PAYLOAD
        assert args[2] == {"topic": "payment"}

    def test_unknown_shape_still_200(self, unauthenticated_client):
        client, mock_db = unauthenticated_client

        response = client.post("/webhooks/mercadopago", json={"type": "merchant_order"})

        assert response.status_code == 200
        assert response.json() == {"received": True}
        mock_db.query.assert_not_called()

    def test_unknown_payment_still_200(self, unauthenticated_client):
        client, mock_db = unauthenticated_client

        response = client.post("/webhooks/mercadopago", json=IPN_PAYLOAD)

        assert response.status_code == 200
        assert response.json()["note"] == "payment not found locally"

    def test_invalid_json_returns_500(self, unauthenticated_client):
        client, _ = unauthenticated_client

        response = client.post(
            "/webhooks/mercadopago",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 500
        assert "error" in response.json()


class TestPlatformWebhook:
    def test_routes_to_platform_reconciliation(self, unauthenticated_client):
        client, mock_db = unauthenticated_client

        with patch("app.routers.webhooks.reconcile_platform") as mock_reconcile, \
                patch("app.routers.webhooks.reconcile") as mock_client_reconcile:
            mock_reconcile.return_value = ReconciliationAck(payment_id="123", status="approved")
            response = client.post("/webhooks/mercadopago/platform", json=IPN_PAYLOAD)

        assert response.status_code == 200
        assert response.json() == {"received": True, "payment_id": "123", "status": "approved"}
        assert mock_reconcile.call_args.args[0] is mock_db
        assert mock_reconcile.call_args.args[1] == IPN_PAYLOAD
        mock_client_reconcile.assert_not_called()

    def test_invalid_json_returns_500(self, unauthenticated_client):
        client, _ = unauthenticated_client

        response = client.post(
            "/webhooks/mercadopago/platform",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 500
