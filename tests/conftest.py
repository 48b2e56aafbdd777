"""Shared fixtures.

:py:class:`FakeChain` implements both the contract factory and the chain provider
capabilities in memory, so that we can test the deployment orchestration
without a JSON-RPC node.
"""

import asyncio
from collections import defaultdict

import pytest
from eth_typing import HexAddress
from hexbytes import HexBytes
from web3 import Web3

from lsp_factory.config import DeploymentConfig
from lsp_factory.constants import CONTRACT_CREATED_TOPIC, ContractRole
from lsp_factory.errors import BroadcastFailure
from lsp_factory.interfaces import BaseContractAddresses, ContractHandle, PendingDeployment
from lsp_factory.minimal_proxy import get_minimal_proxy_runtime_code

#: Our test signer EOA
SIGNER_ADDRESS = "0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf"

#: Deployed base contracts
ACCOUNT_BASE = "0x00000000000000000000000000000000000000a1"
KEY_MANAGER_BASE = "0x00000000000000000000000000000000000000b2"
UNIVERSAL_RECEIVER_BASE = "0x00000000000000000000000000000000000000c3"

#: A network wide shared universal receiver delegate
DEFAULT_UNIVERSAL_RECEIVER = "0x00000000000000000000000000000000000000d4"


class FakeChain:
    """In-memory contract factory and chain provider.

    - Every submission and receipt is recorded in :py:attr:`calls` in the order they happen

    - Receipts arrive after ``confirmation_delay`` seconds
    """

    def __init__(self, confirmation_delay: float = 0.01, signer_is_profile: bool = False):
        self.confirmation_delay = confirmation_delay
        self.signer_is_profile = signer_is_profile

        #: Signer kind reported to the orchestrator, ``None`` to detect from the code
        self.is_signer_universal_profile: bool | None = None

        #: (method, role, details) tuples
        self.calls: list[tuple] = []

        #: Deployed bytecode by address
        self.code: dict[str, bytes] = {}

        #: Roles whose deployment submission is rejected
        self.fail_submission: set[ContractRole] = set()

        #: (role, function name or "deploy") pairs that revert
        self.reverts: set[tuple[ContractRole, str]] = set()

        #: Per role receipt delay overrides
        self.delays: dict[ContractRole, float] = {}

        self.receipts: dict[HexBytes, tuple[ContractRole, dict]] = {}
        self.counter = 0

    def get_calls(self, method: str, role: ContractRole | None = None) -> list[tuple]:
        return [c for c in self.calls if c[0] == method and (role is None or c[1] == role)]

    def index_of(self, method: str, role: ContractRole) -> int:
        """Position of the first call of a kind in the call log."""
        for idx, call in enumerate(self.calls):
            if call[0] == method and call[1] == role:
                return idx
        raise AssertionError(f"No {method} for {role} in {self.calls}")

    def count_submissions(self) -> dict[ContractRole, int]:
        counts = defaultdict(int)
        for call in self.calls:
            if call[0] in ("deploy_standalone", "deploy_proxy", "transact"):
                counts[call[1]] += 1
        return counts

    def _next_tx_hash(self) -> HexBytes:
        self.counter += 1
        return HexBytes(Web3.keccak(text=f"tx-{self.counter}"))

    def _create_contract(self, role: ContractRole, tx_hash: HexBytes, code: bytes, kind="deploy") -> HexAddress:
        address = Web3.to_checksum_address(HexBytes(Web3.keccak(text=f"contract-{self.counter}"))[-20:])
        self.code[address] = code
        status = 0 if (role, kind) in self.reverts else 1

        if self.signer_is_profile:
            receipt = {
                "status": status,
                "blockNumber": self.counter,
                "contractAddress": None,
                "logs": [
                    {
                        "topics": [
                            CONTRACT_CREATED_TOPIC,
                            HexBytes(bytes(32)),
                            HexBytes(bytes(12) + HexBytes(address)),
                            HexBytes(bytes(32)),
                        ]
                    }
                ],
            }
        else:
            receipt = {"status": status, "blockNumber": self.counter, "contractAddress": address, "logs": []}

        self.receipts[tx_hash] = (role, receipt)
        return address

    async def deploy_standalone(self, role, bytecode, constructor_args, gas) -> PendingDeployment:
        self.calls.append(("deploy_standalone", role, {"bytecode": bytecode, "args": list(constructor_args), "gas": gas}))
        await asyncio.sleep(0)
        if role in self.fail_submission:
            raise BroadcastFailure("Insufficient funds for gas * price + value")
        tx_hash = self._next_tx_hash()
        self._create_contract(role, tx_hash, HexBytes(bytecode or b"\x60\x80"))
        return PendingDeployment(role=role, tx_hash=tx_hash)

    async def attach(self, role, address) -> ContractHandle:
        self.calls.append(("attach", role, {"address": address}))
        return ContractHandle(role=role, address=address)

    async def deploy_proxy(self, role, base_address, gas) -> PendingDeployment:
        self.calls.append(("deploy_proxy", role, {"base_address": base_address, "gas": gas}))
        await asyncio.sleep(0)
        if role in self.fail_submission:
            raise BroadcastFailure("Insufficient funds for gas * price + value")
        tx_hash = self._next_tx_hash()
        self._create_contract(role, tx_hash, get_minimal_proxy_runtime_code(base_address))
        return PendingDeployment(role=role, tx_hash=tx_hash, base_address=base_address)

    async def transact(self, role, address, function_signature, args, gas) -> HexBytes:
        self.calls.append(("transact", role, {"address": address, "function": function_signature, "args": list(args), "gas": gas}))
        await asyncio.sleep(0)
        tx_hash = self._next_tx_hash()
        function_name = function_signature.split("(")[0]
        status = 0 if (role, function_name) in self.reverts else 1
        self.receipts[tx_hash] = (role, {"status": status, "blockNumber": self.counter, "contractAddress": None, "logs": []})
        return tx_hash

    async def get_code(self, address) -> bytes:
        self.calls.append(("get_code", None, {"address": address}))
        await asyncio.sleep(0)
        return self.code.get(address, b"")

    async def wait_for_receipt(self, tx_hash) -> dict:
        role, receipt = self.receipts[HexBytes(tx_hash)]
        await asyncio.sleep(self.delays.get(role, self.confirmation_delay))
        self.calls.append(("receipt", role, {"tx_hash": tx_hash}))
        return receipt


@pytest.fixture()
def chain() -> FakeChain:
    """Fake chain with a plain EOA signer."""
    return FakeChain()


@pytest.fixture()
def profile_signer_chain() -> FakeChain:
    """Fake chain where the signer is itself a universal profile."""
    return FakeChain(signer_is_profile=True)


@pytest.fixture()
def signer_address() -> HexAddress:
    return SIGNER_ADDRESS


@pytest.fixture()
def config() -> DeploymentConfig:
    return DeploymentConfig()


@pytest.fixture()
def base_contract_addresses() -> BaseContractAddresses:
    """Base contracts for all three roles."""
    return BaseContractAddresses(
        account=ACCOUNT_BASE,
        key_manager=KEY_MANAGER_BASE,
        universal_receiver=UNIVERSAL_RECEIVER_BASE,
    )


@pytest.fixture()
def key_manager_base() -> HexAddress:
    return KEY_MANAGER_BASE


@pytest.fixture()
def default_universal_receiver() -> HexAddress:
    return DEFAULT_UNIVERSAL_RECEIVER
