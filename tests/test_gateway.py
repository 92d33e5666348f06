"""
Tests for the Razorpay gateway wrapper.
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests
from razorpay.errors import ServerError

from sammilan.exceptions import GatewayError
from sammilan.services.gateway import RazorpayGateway, from_minor_units, to_minor_units


@pytest.fixture
def gateway():
    gateway = RazorpayGateway(key_id="rzp_test_key", key_secret="test_key_secret", timeout=3.0)
    gateway.client.order = MagicMock()
    return gateway


class TestMinorUnits:

    def test_to_minor_units_rounds_half_up(self):
        assert to_minor_units(Decimal("500")) == 50000
        assert to_minor_units(Decimal("10.005")) == 1001

    def test_from_minor_units(self):
        assert from_minor_units(50000) == Decimal("500.00")
        assert from_minor_units(None) == Decimal("0.00")


class TestCreateOrder:

    @pytest.mark.asyncio
    async def test_sends_minor_units_with_timeout(self, gateway):
        gateway.client.order.create.return_value = {"id": "order_abc", "amount": 50000}

        order = await gateway.create_order(
            Decimal("500"), "INR", "donation_1", notes={"donor_name": "Jane Doe"}
        )

        assert order["id"] == "order_abc"
        gateway.client.order.create.assert_called_once_with(
            {
                "amount": 50000,
                "currency": "INR",
                "receipt": "donation_1",
                "notes": {"donor_name": "Jane Doe"},
            },
            timeout=3.0,
        )

    @pytest.mark.asyncio
    async def test_timeout_becomes_gateway_error(self, gateway):
        gateway.client.order.create.side_effect = requests.exceptions.Timeout()

        with pytest.raises(GatewayError, match="timed out"):
            await gateway.create_order(Decimal("500"), "INR", "donation_1")

    @pytest.mark.asyncio
    async def test_sdk_error_becomes_gateway_error(self, gateway):
        gateway.client.order.create.side_effect = ServerError("upstream down")

        with pytest.raises(GatewayError, match="failed"):
            await gateway.create_order(Decimal("500"), "INR", "donation_1")


class TestFetchOrderPayments:

    @pytest.mark.asyncio
    async def test_unpacks_items(self, gateway):
        gateway.client.order.payments.return_value = {
            "entity": "collection",
            "count": 2,
            "items": [
                {"id": "pay_1", "status": "failed"},
                {"id": "pay_2", "status": "captured"},
            ],
        }

        payments = await gateway.fetch_order_payments("order_abc")

        assert [p["id"] for p in payments] == ["pay_1", "pay_2"]
        gateway.client.order.payments.assert_called_once_with("order_abc", timeout=3.0)

    @pytest.mark.asyncio
    async def test_no_items(self, gateway):
        gateway.client.order.payments.return_value = {"entity": "collection", "count": 0}
        assert await gateway.fetch_order_payments("order_abc") == []

    @pytest.mark.asyncio
    async def test_timeout_becomes_gateway_error(self, gateway):
        gateway.client.order.payments.side_effect = requests.exceptions.ReadTimeout()

        with pytest.raises(GatewayError, match="timed out"):
            await gateway.fetch_order_payments("order_abc")
