"""Integration tests for the public payment page endpoints (app/routers/public.py)"""
from datetime import date
from decimal import Decimal
from unittest.mock import patch

from app.services.checkout import PublicPaymentInfo
from app.services.errors import PaymentGatewayError, PaymentGatewayNotConfiguredError


class TestPaymentPage:
    def test_unknown_token_is_404(self, unauthenticated_client):
        client, _ = unauthenticated_client

        response = client.get("/public/pay/nope")

        assert response.status_code == 404

    def test_returns_public_fields(self, unauthenticated_client):
        client, _ = unauthenticated_client

        with patch("app.routers.public.get_public_payment_info") as mock_info:
            mock_info.return_value = PublicPaymentInfo(
                name="João Silva",
                plan_name="Mensal",
                due_date=date(2024, 6, 4),
                price_value=Decimal("35.00"),
                is_active=True,
                payment_type="pix",
            )
            response = client.get("/public/pay/tok123")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "João Silva"
        assert data["due_date"] == "2024-06-04"
        assert "mercadopago_access_token" not in data


class TestCheckout:
    def test_checkout(self, unauthenticated_client):
        client, mock_db = unauthenticated_client

        with patch("app.routers.public.create_checkout") as mock_checkout:
            mock_checkout.return_value = {
                "payment_id": "987",
                "pix": {"qr_code": "000201", "qr_code_base64": None, "ticket_url": None},
                "card": {"checkout_url": "https://mp/checkout", "sandbox_url": None},
            }
            response = client.post(
                "/public/pay/tok123/checkout",
                headers={"Origin": "https://app.example.com"},
            )

        assert response.status_code == 200
        assert response.json()["pix"]["qr_code"] == "000201"
        mock_checkout.assert_called_once_with(mock_db, "tok123", origin="https://app.example.com")

    def test_gateway_not_configured_is_400(self, unauthenticated_client):
        client, _ = unauthenticated_client

        with patch("app.routers.public.create_checkout", side_effect=PaymentGatewayNotConfiguredError(1)):
            response = client.post("/public/pay/tok123/checkout")

        assert response.status_code == 400
        assert response.json()["detail"] == "Payment not configured"

    def test_gateway_failure_is_502(self, unauthenticated_client):
        client, _ = unauthenticated_client

        with patch("app.routers.public.create_checkout", side_effect=PaymentGatewayError("down")):
            response = client.post("/public/pay/tok123/checkout")

        assert response.status_code == 502


def test_health(unauthenticated_client):
    client, _ = unauthenticated_client

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
