"""Receipt waiting and contract address extraction."""

import asyncio

import pytest
from hexbytes import HexBytes
from web3 import Web3

from lsp_factory.config import DeploymentConfig
from lsp_factory.constants import CONTRACT_CREATED_TOPIC, ContractRole
from lsp_factory.errors import AddressResolutionFailed, DeploymentReverted, DeploymentStage, InitializationFailed, ReceiptTimeout
from lsp_factory.events import DeploymentEvent, DeploymentStatus, DeploymentType
from lsp_factory.receipt import ReceiptAddressSource, wait_for_receipt

CREATED = "0x2B5AD5c4795c026514f8317c7a215E218DcCD6cF"


def _contract_created_receipt(address: str) -> dict:
    return {
        "status": 1,
        "contractAddress": None,
        "logs": [
            # Some unrelated event first
            {"topics": [HexBytes(Web3.keccak(text="DataChanged(bytes32,bytes)"))]},
            {
                "topics": [
                    "0x" + bytes(CONTRACT_CREATED_TOPIC).hex(),
                    HexBytes(bytes(32)),
                    HexBytes(bytes(12) + HexBytes(address)),
                    HexBytes(bytes(32)),
                ]
            },
        ],
    }


def test_address_source_for_signer():
    assert ReceiptAddressSource.for_signer(True) == ReceiptAddressSource.contract_created_log
    assert ReceiptAddressSource.for_signer(False) == ReceiptAddressSource.contract_address_field


def test_extract_from_contract_address_field():
    """EOA deployer receipt has the standard field."""
    receipt = {"status": 1, "contractAddress": CREATED.lower(), "logs": []}
    assert ReceiptAddressSource.contract_address_field.extract(receipt) == CREATED
    assert ReceiptAddressSource.for_signer(False).extract(receipt) == CREATED
    # The log strategy does not look at the field
    assert ReceiptAddressSource.contract_created_log.extract(receipt) is None


def test_extract_from_contract_created_log():
    """Universal profile deployer emits ContractCreated."""
    receipt = _contract_created_receipt(CREATED)
    assert ReceiptAddressSource.contract_created_log.extract(receipt) == CREATED
    assert ReceiptAddressSource.for_signer(True).extract(receipt) == CREATED
    assert ReceiptAddressSource.contract_address_field.extract(receipt) is None


class _Provider:
    def __init__(self, receipt: dict, delay=0.0):
        self.receipt = receipt
        self.delay = delay
        self.waited = 0

    async def wait_for_receipt(self, tx_hash):
        self.waited += 1
        await asyncio.sleep(self.delay)
        return self.receipt

    async def get_code(self, address):
        return b""


def _pending(function_name=None, tx_hash=HexBytes(b"\x01" * 32)) -> DeploymentEvent:
    return DeploymentEvent(
        type=DeploymentType.proxy,
        contract_name=ContractRole.key_manager,
        status=DeploymentStatus.pending,
        transaction_hash=tx_hash,
        address=CREATED if function_name else None,
        function_name=function_name,
    )


@pytest.mark.asyncio
async def test_wait_for_receipt_confirms_deployment():
    provider = _Provider({"status": 1, "blockNumber": 5, "contractAddress": CREATED, "logs": []})
    confirmed = await wait_for_receipt(provider, _pending(), DeploymentStage.deployment)
    assert confirmed.status == DeploymentStatus.complete
    assert confirmed.address == CREATED
    assert confirmed.receipt["blockNumber"] == 5
    assert confirmed.type == DeploymentType.proxy


@pytest.mark.asyncio
async def test_wait_for_receipt_without_transaction():
    """Attach-only events have nothing to wait for."""
    provider = _Provider({})
    assert await wait_for_receipt(provider, _pending(tx_hash=None), DeploymentStage.deployment) is None
    assert provider.waited == 0


@pytest.mark.asyncio
async def test_wait_for_receipt_reverted():
    """Reverted deployment and initialisation raise different errors."""
    provider = _Provider({"status": 0, "blockNumber": 5, "contractAddress": None, "logs": []})

    with pytest.raises(DeploymentReverted) as exc_info:
        await wait_for_receipt(provider, _pending(), DeploymentStage.deployment)
    assert exc_info.value.role == ContractRole.key_manager
    assert exc_info.value.stage == DeploymentStage.deployment
    assert exc_info.value.tx_hash == HexBytes(b"\x01" * 32)

    with pytest.raises(InitializationFailed):
        await wait_for_receipt(provider, _pending("initialize"), DeploymentStage.initialization)


@pytest.mark.asyncio
async def test_wait_for_receipt_no_address():
    provider = _Provider({"status": 1, "blockNumber": 5, "contractAddress": None, "logs": []})
    with pytest.raises(AddressResolutionFailed):
        await wait_for_receipt(provider, _pending(), DeploymentStage.deployment)


@pytest.mark.asyncio
async def test_wait_for_receipt_function_call_keeps_address():
    """Calls do not create contracts, the called address is retained."""
    provider = _Provider({"status": 1, "blockNumber": 5, "contractAddress": None, "logs": []})
    confirmed = await wait_for_receipt(provider, _pending("initialize"), DeploymentStage.initialization)
    assert confirmed.address == CREATED
    assert confirmed.function_name == "initialize"


@pytest.mark.asyncio
async def test_wait_for_receipt_timeout():
    """Caller imposed timeout surfaces as ReceiptTimeout."""
    provider = _Provider({"status": 1, "contractAddress": CREATED, "logs": []}, delay=1.0)
    config = DeploymentConfig(receipt_timeout=0.01)
    with pytest.raises(ReceiptTimeout) as exc_info:
        await wait_for_receipt(provider, _pending(), DeploymentStage.deployment, config=config)
    assert exc_info.value.stage == DeploymentStage.deployment
