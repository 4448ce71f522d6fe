"""Command line interface."""

from unittest.mock import Mock

import pytest
from typer.testing import CliRunner

import cctp_bridge.cli
from cctp_bridge.attestation import AttestationRecord, AttestationStatus
from cctp_bridge.bridge import CCTPBridge
from cctp_bridge.cli import app
from cctp_bridge.errors import AttestationFetchError
from tests.fakes import RECIPIENT, TEST_PRIVATE_KEY, FakeNetwork, ScriptedAttestationService

runner = CliRunner()


@pytest.fixture()
def fake_bridge(monkeypatch, no_wait_policy) -> FakeNetwork:
    """Route the bridge command to fake chains."""
    network = FakeNetwork()

    def create_bridge(attestation_api, policy):
        return CCTPBridge(
            connection_factory=network,
            attestation_api=attestation_api,
            policy=no_wait_policy,
            fetch_status=ScriptedAttestationService(),
        )

    monkeypatch.setattr(cctp_bridge.cli, "CCTPBridge", create_bridge)
    return network


def test_bridge_command(fake_bridge, monkeypatch):
    monkeypatch.setenv("PRIVATE_KEY", TEST_PRIVATE_KEY)
    fake_bridge["base-sepolia"].balance = 10_000_000

    result = runner.invoke(app, ["bridge", "10", "base-sepolia", "eth-sepolia", RECIPIENT])

    assert result.exit_code == 0, result.output
    assert "Burn tx: 0xbbbb" in result.output
    assert "Mint tx: 0xcccc" in result.output
    assert "Message hash: 0x" in result.output
    assert fake_bridge.private_keys == [TEST_PRIVATE_KEY, TEST_PRIVATE_KEY]
    assert TEST_PRIVATE_KEY[2:] not in result.output


def test_bridge_command_failure(fake_bridge, monkeypatch):
    monkeypatch.setenv("PRIVATE_KEY", TEST_PRIVATE_KEY)

    result = runner.invoke(app, ["bridge", "10", "base-sepolia", "eth-sepolia", RECIPIENT])

    assert result.exit_code == 1
    assert "Insufficient USDC balance" in result.output


def test_bridge_command_without_private_key(fake_bridge, monkeypatch):
    monkeypatch.delenv("PRIVATE_KEY", raising=False)

    result = runner.invoke(app, ["bridge", "10", "base-sepolia", "eth-sepolia", RECIPIENT])

    assert result.exit_code == 1
    assert "PRIVATE_KEY" in result.output
    assert fake_bridge.private_keys == []


def test_bridge_command_has_no_private_key_option():
    result = runner.invoke(app, ["bridge", "--help"])
    assert result.exit_code == 0
    assert "--private-key" not in result.output


def test_status_command(monkeypatch):
    record = AttestationRecord(message_hash="0x" + "ab" * 32, status=AttestationStatus.complete, attestation=b"\x11" * 65)
    check = Mock(return_value=record)
    monkeypatch.setattr(cctp_bridge.cli, "check_attestation_status", check)
    monkeypatch.setenv("CCTP_ATTESTATION_API", "http://localhost:8080/v1/attestations")

    result = runner.invoke(app, ["status", "0x" + "ab" * 32])

    assert result.exit_code == 0, result.output
    assert "Status: complete" in result.output
    assert "Attestation: 0x" + "11" * 32 + "..." in result.output
    check.assert_called_once_with("0x" + "ab" * 32, api_base_url="http://localhost:8080/v1/attestations")


def test_status_command_error(monkeypatch):
    check = Mock(side_effect=AttestationFetchError("Failed to fetch attestation: HTTP 500"))
    monkeypatch.setattr(cctp_bridge.cli, "check_attestation_status", check)

    result = runner.invoke(app, ["status", "0x" + "ab" * 32])

    assert result.exit_code == 1
    assert "HTTP 500" in result.output


def test_chains_command():
    result = runner.invoke(app, ["chains"])
    assert result.exit_code == 0, result.output
    for slug in ("base-sepolia", "eth-sepolia", "arb-sepolia"):
        assert slug in result.output
    assert "JSON_RPC_BASE_SEPOLIA" in result.output


@pytest.mark.parametrize("max_attempts", ["0", "-1"])
def test_bridge_command_rejects_max_attempts(fake_bridge, monkeypatch, max_attempts):
    monkeypatch.setenv("PRIVATE_KEY", TEST_PRIVATE_KEY)
    fake_bridge["base-sepolia"].balance = 10_000_000

    result = runner.invoke(app, ["bridge", "10", "base-sepolia", "eth-sepolia", RECIPIENT, "--max-attempts", max_attempts])

    assert result.exit_code == 2
    assert "--max-attempts" in result.output
    assert fake_bridge.private_keys == []


@pytest.mark.parametrize("message_hash", ["0x1234", "../../admin", "0x" + "ab" * 32 + "?x=1"])
def test_status_command_rejects_bad_hash(monkeypatch, message_hash):
    check = Mock()
    monkeypatch.setattr(cctp_bridge.cli, "check_attestation_status", check)

    result = runner.invoke(app, ["status", message_hash])

    assert result.exit_code == 2
    assert "32 byte" in result.output
    check.assert_not_called()
