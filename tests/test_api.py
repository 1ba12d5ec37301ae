"""Tests for the FastAPI endpoints."""

import pytest
from httpx import ASGITransport, AsyncClient

from dexswap.api.app import create_app
from dexswap.config import Settings
from dexswap.errors import ConfigurationError
from dexswap.swap.workflow import SwapWorkflow

from conftest import TEST_ADDRESS, TEST_PRIVATE_KEY, FakeEth, make_client, make_submitter, quote_body, swap_body


def build_app(settings, signer, responses, eth=None):
    client, recorder = make_client(signer, *responses)
    submitter = make_submitter(eth or FakeEth(receipts=[{"status": 1, "blockNumber": 7, "gasUsed": 1}]))
    workflow = SwapWorkflow.from_settings(settings, client=client, submitter=submitter)
    return create_app(settings, workflow=workflow), recorder


@pytest.fixture
async def api(settings, signer):
    app, recorder = build_app(settings, signer, [quote_body(), swap_body()])
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        ac.recorder = recorder
        yield ac


class TestHealthEndpoints:
    @pytest.mark.asyncio
    async def test_health_check(self, api):
        response = await api.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "dexswap"}

    @pytest.mark.asyncio
    async def test_detailed_health_redacts_secrets(self, api):
        response = await api.get("/health/detailed")

        assert response.status_code == 200
        data = response.json()
        assert data["workflow_state"] == "idle"
        assert data["config"]["wallet"]["private_key"] == "***"
        assert TEST_PRIVATE_KEY[2:] not in response.text
        assert "test-secret" not in response.text


class TestSwapEndpoints:
    @pytest.mark.asyncio
    async def test_quote_prepare_send(self, api):
        response = await api.post("/swap/quote", json={"amount": "1000000000000000000"})
        data = response.json()
        assert data["success"] is True
        assert data["state"] == "quote_fetched"
        assert data["quote"]["to_token_amount"] == "3450000000"

        response = await api.post("/swap/prepare", json={"slippage": "0.01"})
        data = response.json()
        assert data["success"] is True
        assert data["state"] == "swap_prepared"
        assert data["payload"]["gas"] == "200000"
        assert api.recorder.requests[1].url.params["slippage"] == "0.01"

        response = await api.post("/swap/send")
        data = response.json()
        assert data["success"] is True
        assert data["state"] == "confirmed"
        assert data["tx_hash"] == "0x" + "ab" * 32
        assert data["receipt"]["status"] == "success"

    @pytest.mark.asyncio
    async def test_quote_uses_configured_tokens(self, api):
        await api.post("/swap/quote", json={"amount": "5"})

        params = api.recorder.requests[0].url.params
        assert params["chainId"] == "1"
        assert params["fromTokenAddress"] == "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
        assert params["toTokenAddress"] == "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"

    @pytest.mark.asyncio
    async def test_prepare_without_body_uses_default_slippage(self, api):
        await api.post("/swap/quote", json={"amount": "5"})
        response = await api.post("/swap/prepare")

        assert response.json()["success"] is True
        assert api.recorder.requests[1].url.params["slippage"] == "0.03"
        assert api.recorder.requests[1].url.params["userWalletAddress"] == TEST_ADDRESS

    @pytest.mark.asyncio
    async def test_send_before_prepare_reports_stage(self, api):
        response = await api.post("/swap/send")

        data = response.json()
        assert data["success"] is False
        assert data["state"] == "idle"
        assert data["stage"] == "send"
        assert "Cannot send" in data["error"]

    @pytest.mark.asyncio
    async def test_invalid_amount_is_user_visible_error(self, api):
        response = await api.post("/swap/quote", json={"amount": "1.5"})

        data = response.json()
        assert response.status_code == 200
        assert data["success"] is False
        assert data["state"] == "errored"
        assert data["stage"] == "quote"
        assert "positive integer" in data["error"]

        state = (await api.get("/swap/state")).json()
        assert state["state"] == "errored"

        reset = (await api.post("/swap/reset")).json()
        assert reset["state"] == "idle"
        assert reset["error"] is None

    @pytest.mark.asyncio
    async def test_oversized_amount_is_user_visible_error(self, api):
        response = await api.post("/swap/quote", json={"amount": "9" * 5000})

        data = response.json()
        assert response.status_code == 200
        assert data["success"] is False
        assert data["state"] == "errored"
        assert data["stage"] == "quote"
        assert api.recorder.requests == []


async def run_to_send(settings, signer, eth):
    app, _ = build_app(settings, signer, [quote_body(), swap_body()], eth=eth)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        await ac.post("/swap/quote", json={"amount": "1000000000000000000"})
        await ac.post("/swap/prepare")
        response = await ac.post("/swap/send")
    return response.json()


class TestSendFailures:
    @pytest.mark.asyncio
    async def test_rejected_broadcast_reports_send_stage(self, settings, signer):
        data = await run_to_send(settings, signer, FakeEth(send_error=ValueError("nonce too low")))

        assert data["success"] is False
        assert data["state"] == "errored"
        assert data["stage"] == "send"
        assert "nonce too low" in data["error"]
        assert "submitted" not in data["history"]

    @pytest.mark.asyncio
    async def test_confirmation_timeout_reports_confirm_stage(self, settings, signer):
        eth = FakeEth()
        data = await run_to_send(settings, signer, eth)

        assert data["success"] is False
        assert data["state"] == "errored"
        assert data["stage"] == "confirm"
        assert data["tx_hash"] == "0x" + "ab" * 32
        assert "not confirmed" in data["error"]
        assert len(eth.sent) == 1

    @pytest.mark.asyncio
    async def test_reverted_transaction_is_not_success(self, settings, signer):
        eth = FakeEth(receipts=[{"status": 0, "blockNumber": 7, "gasUsed": 21000}])
        data = await run_to_send(settings, signer, eth)

        assert data["success"] is False
        assert data["state"] == "confirmed"
        assert data["stage"] == "confirm"
        assert data["receipt"]["status"] == "reverted"
        assert "reverted" in data["error"]


def test_create_app_requires_credentials():
    settings = Settings(_env_file=None, api_key="", secret_key="", passphrase="", private_key="")

    with pytest.raises(ConfigurationError):
        create_app(settings)


def test_create_app_from_settings(settings):
    app = create_app(settings)

    assert isinstance(app.state.workflow, SwapWorkflow)
    assert app.state.workflow.submitter.address == TEST_ADDRESS
