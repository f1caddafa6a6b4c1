"""Tests for the FastAPI endpoints."""

from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from conftest import DESTINATION, TEST_ADDRESS, FakeNode, make_service
from treasury_relay.api.app import create_app
from treasury_relay.api.deps import parse_amount


async def make_client(service):
    app = create_app(service=service)
    transport = ASGITransport(app=app)
    return AsyncClient(transport=transport, base_url="http://test")


@pytest_asyncio.fixture
async def service(node):
    service = make_service(node)
    yield service
    await service.close()


@pytest_asyncio.fixture
async def client(service):
    async with await make_client(service) as ac:
        yield ac


class TestStatusEndpoints:
    """Tests for read-only endpoints."""

    @pytest.mark.asyncio
    async def test_root(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "online"
        assert data["version"] == "2.2.0"
        assert "coinbaseWallet" in data

    @pytest.mark.asyncio
    async def test_status(self, client, service):
        service.credit_earnings(Decimal("12.5"))

        response = await client.get("/status")

        data = response.json()
        assert data["treasuryBalance"] == "1.000000"
        assert data["canWithdraw"] is True
        assert data["totalEarnings"] == "12.50"
        assert data["endpoint"] == "http://node-a.test"

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "treasuryBalance": "1.000000"}

    @pytest.mark.asyncio
    async def test_detailed_health_redacts_key(self, client):
        await client.get("/health")
        response = await client.get("/health/detailed")

        data = response.json()
        assert data["connected"] is True
        assert data["signer"] is True
        assert data["config"]["treasury_private_key"] == "***"

    @pytest.mark.asyncio
    async def test_balance(self, client):
        response = await client.get("/balance")

        data = response.json()
        assert data["treasuryWallet"] == TEST_ADDRESS
        assert data["balance"] == "1.000000"
        assert data["balanceUSD"] == "3450.00"

    @pytest.mark.asyncio
    async def test_status_without_connectivity(self):
        service = make_service(FakeNode(delay=1.0), rpc_probe_timeout=0.01)

        async with await make_client(service) as ac:
            response = await ac.get("/status")

        assert response.status_code == 200
        assert response.json()["treasuryBalance"] == "0.000000"
        assert response.json()["canWithdraw"] is False

    @pytest.mark.asyncio
    async def test_strategies_live(self, client, service):
        service.credit_earnings(Decimal("100"))

        response = await client.get("/api/apex/strategies/live")

        data = response.json()
        assert data["totalPnL"] == 100.0
        assert data["treasuryBalance"] == "1.000000"
        assert data["canTrade"] is True
        assert data["feeRecipient"] == service.settings.coinbase_wallet


class TestWithdrawEndpoints:
    """Tests for withdrawal routes."""

    @pytest.mark.asyncio
    async def test_withdraw_success(self, client, node):
        response = await client.post("/withdraw", json={"amountETH": 0.5, "to": DESTINATION})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["amount"] == 0.5
        assert data["amountUSD"] == "1725.00"
        assert data["to"] == DESTINATION
        assert data["from"] == TEST_ADDRESS
        assert data["gasUsed"] == "21000"
        assert data["txHash"].startswith("0x")
        assert data["etherscanUrl"].endswith(data["txHash"])
        assert len(node.sent) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/send-to-coinbase", "/send-eth", "/transfer"])
    async def test_withdraw_aliases(self, client, node, path):
        response = await client.post(path, json={"amount": "0.1"})

        assert response.status_code == 200
        assert response.json()["amount"] == 0.1

    @pytest.mark.asyncio
    async def test_amount_from_usd(self, client):
        response = await client.post("/withdraw", json={"amountUSD": 345})

        assert response.status_code == 200
        assert response.json()["amount"] == 0.1
        assert response.json()["amountUSD"] == "345.00"

    @pytest.mark.asyncio
    async def test_coinbase_withdraw_forces_destination(self, client, service):
        response = await client.post(
            "/coinbase-withdraw",
            json={"amountETH": 0.1, "to": "0x000000000000000000000000000000000000dEaD"},
        )

        assert response.status_code == 200
        assert response.json()["to"] == service.settings.coinbase_wallet

    @pytest.mark.asyncio
    async def test_invalid_amount(self, client, node):
        response = await client.post("/withdraw", json={"amountETH": "abc"})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid amount"}
        assert node.calls == []

    @pytest.mark.asyncio
    async def test_missing_body(self, client):
        response = await client.post("/withdraw")

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid amount"

    @pytest.mark.asyncio
    async def test_over_limit_reports_balance(self, client, service, node):
        response = await client.post("/withdraw", json={"amountETH": 2})

        assert response.status_code == 400
        data = response.json()
        assert data["treasuryBalance"] == "1.000000"
        assert data["maxWithdrawable"] == "0.990000"
        assert node.sent == []
        assert service.ledger.total_withdrawn == Decimal("0")

    @pytest.mark.asyncio
    async def test_low_balance_reports_negative_maximum(self):
        service = make_service(FakeNode(balance_eth="0.005"))

        async with await make_client(service) as ac:
            response = await ac.post("/withdraw", json={"amountETH": 0.5})
        await service.close()

        assert response.status_code == 400
        assert response.json()["maxWithdrawable"] == "-0.005000"

    @pytest.mark.asyncio
    async def test_broadcast_failure_is_500(self):
        service = make_service(FakeNode(broadcast_error="nonce too low"))

        async with await make_client(service) as ac:
            response = await ac.post("/withdraw", json={"amountETH": 0.1})
        await service.close()

        assert response.status_code == 500
        assert "nonce too low" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_no_connectivity_is_500(self):
        service = make_service(FakeNode(delay=1.0), rpc_probe_timeout=0.01)

        async with await make_client(service) as ac:
            response = await ac.post("/withdraw", json={"amountETH": 0.1})

        assert response.status_code == 500
        assert response.json() == {"error": "No RPC endpoint reachable"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path", ["/backend-to-coinbase", "/transfer-to-coinbase", "/treasury-to-coinbase"]
    )
    async def test_sweep_routes(self, client, service, path):
        response = await client.post(path, json={})

        assert response.status_code == 200
        data = response.json()
        assert data["amount"] == 0.99
        assert data["to"] == service.settings.coinbase_wallet

    @pytest.mark.asyncio
    async def test_sweep_insufficient(self):
        service = make_service(FakeNode(balance_eth="0.01"))

        async with await make_client(service) as ac:
            response = await ac.post("/backend-to-coinbase")
        await service.close()

        assert response.status_code == 400
        assert response.json()["error"] == "Insufficient treasury balance"
        assert response.json()["maxWithdrawable"] == "0.000000"


class TestEarningsEndpoints:
    """Tests for bookkeeping routes."""

    @pytest.mark.asyncio
    async def test_credit_twice(self, client, service, node):
        await client.post("/credit-earnings", json={"amount": 10})
        response = await client.post("/credit-earnings", json={"amount": 10})

        assert response.json() == {"success": True, "credited": 10.0, "totalEarnings": "20.00"}
        assert service.ledger.total_earnings == Decimal("20")
        assert node.calls == []

    @pytest.mark.asyncio
    async def test_credit_prefers_usd(self, client):
        response = await client.post("/credit-earnings", json={"amountUSD": "7.5", "amount": 100})

        assert response.json()["credited"] == 7.5

    @pytest.mark.asyncio
    async def test_negative_credit_ignored(self, client, service):
        await client.post("/credit-earnings", json={"amount": -5})

        assert service.ledger.total_earnings == Decimal("0")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/send-to-backend", "/fund-backend", "/fund-from-earnings"])
    async def test_allocation_is_informational(self, client, service, node, path):
        response = await client.post(path, json={"amountUSD": 690})

        data = response.json()
        assert data == {"success": True, "allocated": 0.2, "to": service.settings.treasury_wallet}
        assert node.calls == []


class TestAdminEndpoints:

    @pytest.mark.asyncio
    async def test_reconnect(self, client, node):
        response = await client.post("/admin/reconnect")

        assert response.status_code == 200
        data = response.json()
        assert data["endpoint"] == "http://node-a.test"
        assert data["signer"] == TEST_ADDRESS
        assert data["blockNumber"] == node.block_number

    @pytest.mark.asyncio
    async def test_reconnect_requires_token(self, node):
        service = make_service(node, admin_token="secret")

        async with await make_client(service) as ac:
            denied = await ac.post("/admin/reconnect")
            allowed = await ac.post("/admin/reconnect", headers={"X-Admin-Token": "secret"})
        await service.close()

        assert denied.status_code == 401
        assert allowed.status_code == 200


class TestParseAmount:

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, "0"),
            ("", "0"),
            ("abc", "0"),
            (0.5, "0.5"),
            ("0.25", "0.25"),
            ("1.5eth", "1.5"),
            (" 2 ", "2"),
            ("-3", "-3"),
            (True, "0"),
        ],
    )
    def test_parse_amount(self, value, expected):
        assert parse_amount(value) == Decimal(expected)
