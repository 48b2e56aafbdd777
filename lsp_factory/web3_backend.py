"""web3.py implementation of the deployment capabilities.

- :py:class:`Web3ContractFactory` signs transactions locally with a :py:class:`lsp_factory.hotwallet.HotWallet`
  and broadcasts them as raw transactions

- :py:class:`Web3ChainProvider` reads the chain

Contract bytecode comes from compiler artifacts, see :py:func:`lsp_factory.abi.load_artifact_bytecode`.

Example:

.. code-block:: python

    web3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(json_rpc_url))

    wallet = HotWallet.from_private_key(os.environ["PRIVATE_KEY"])
    await wallet.sync_nonce(web3)

    artifacts = {
        ContractRole.account: load_artifact_bytecode("artifacts/LSP0ERC725Account.json"),
        ContractRole.key_manager: load_artifact_bytecode("artifacts/LSP6KeyManager.json"),
        ContractRole.universal_receiver: load_artifact_bytecode("artifacts/LSP1UniversalReceiverDelegateUP.json"),
    }

    factory = Web3ContractFactory(web3, wallet, artifacts)
    provider = Web3ChainProvider(web3)
"""

import asyncio
import logging
from typing import Sequence

from eth_typing import HexAddress
from hexbytes import HexBytes
from web3 import AsyncWeb3, Web3
from web3.exceptions import TimeExhausted, Web3Exception

from lsp_factory.abi import encode_constructor_args, encode_with_signature
from lsp_factory.constants import CONSTRUCTOR_ARG_TYPES, ContractRole
from lsp_factory.errors import BroadcastFailure
from lsp_factory.gas import GasPriceMethod, apply_gas, estimate_gas_price
from lsp_factory.hotwallet import HotWallet
from lsp_factory.interfaces import ContractHandle, PendingDeployment
from lsp_factory.minimal_proxy import get_minimal_proxy_creation_code

logger = logging.getLogger(__name__)


class Web3ContractFactory:
    """Deploy and call profile contracts using a hot wallet."""

    def __init__(
        self,
        web3: AsyncWeb3,
        wallet: HotWallet,
        artifacts: dict[ContractRole, bytes | str] | None = None,
        gas_price_method: GasPriceMethod | None = None,
    ):
        """
        :param wallet:
            Signer. Nonce must be synced.

        :param artifacts:
            Default creation bytecode for each contract

        :param gas_price_method:
            Force legacy or London gas pricing, autodetect by default
        """
        self.web3 = web3
        self.wallet = wallet
        self.artifacts = {role: HexBytes(bytecode) for role, bytecode in (artifacts or {}).items()}
        self.gas_price_method = gas_price_method
        self.chain_id: int | None = None

        #: Transactions are sent directly from the hot wallet EOA,
        #: so created addresses are in the receipt ``contractAddress`` field
        self.is_signer_universal_profile = False

    def __repr__(self):
        return f"<Web3ContractFactory {self.wallet.address} chain:{self.chain_id}>"

    async def send_transaction(self, tx: dict) -> HexBytes:
        """Fill in chain id and gas price, sign and broadcast.

        :raise BroadcastFailure:
            If the JSON-RPC node rejects the transaction.
        """
        if self.chain_id is None:
            self.chain_id = await self.web3.eth.chain_id

        tx["chainId"] = self.chain_id
        tx.setdefault("value", 0)
        apply_gas(tx, await estimate_gas_price(self.web3, self.gas_price_method))

        signed_tx = self.wallet.sign_transaction_with_new_nonce(tx)

        try:
            tx_hash = await self.web3.eth.send_raw_transaction(signed_tx.raw_transaction)
        except (ValueError, Web3Exception) as e:
            # Anvil/Ethereum tester immediately fail on the broadcast
            # ValueError: {'code': -32003, 'message': 'Insufficient funds for gas * price + value'}
            raise BroadcastFailure(f"Could not broadcast transaction: {signed_tx}. Transaction data: {signed_tx.source}. JSON-RPC error: {e}") from e

        logger.info("Broadcasted %s, nonce %d", HexBytes(tx_hash).hex(), signed_tx.nonce)
        return HexBytes(tx_hash)

    async def deploy_standalone(
        self,
        role: ContractRole,
        bytecode: bytes | None,
        constructor_args: Sequence,
        gas: int,
    ) -> PendingDeployment:
        if bytecode is None:
            bytecode = self.artifacts.get(role)
            assert bytecode, f"No default bytecode configured for {role.value}"

        data = HexBytes(HexBytes(bytecode) + encode_constructor_args(CONSTRUCTOR_ARG_TYPES[role], constructor_args))
        tx_hash = await self.send_transaction({"data": data, "gas": gas})
        return PendingDeployment(role=role, tx_hash=tx_hash)

    async def attach(self, role: ContractRole, address: HexAddress) -> ContractHandle:
        return ContractHandle(role=role, address=Web3.to_checksum_address(address))

    async def deploy_proxy(self, role: ContractRole, base_address: HexAddress, gas: int) -> PendingDeployment:
        data = get_minimal_proxy_creation_code(base_address)
        tx_hash = await self.send_transaction({"data": data, "gas": gas})
        return PendingDeployment(role=role, tx_hash=tx_hash, base_address=base_address)

    async def transact(
        self,
        role: ContractRole,
        address: HexAddress,
        function_signature: str,
        args: Sequence,
        gas: int,
    ) -> HexBytes:
        data = encode_with_signature(function_signature, args)
        return await self.send_transaction({"to": Web3.to_checksum_address(address), "data": data, "gas": gas})


class Web3ChainProvider:
    """Read chain state with web3.py."""

    def __init__(self, web3: AsyncWeb3, timeout: float = 120.0, poll_latency: float = 0.5):
        """
        :param timeout:
            Give up waiting a receipt after this many seconds

        :param poll_latency:
            How often to poll for a receipt
        """
        self.web3 = web3
        self.timeout = timeout
        self.poll_latency = poll_latency

    async def get_code(self, address: HexAddress) -> bytes:
        return HexBytes(await self.web3.eth.get_code(Web3.to_checksum_address(address)))

    async def wait_for_receipt(self, tx_hash: HexBytes) -> dict:
        try:
            return await self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.timeout, poll_latency=self.poll_latency)
        except TimeExhausted as e:
            raise asyncio.TimeoutError(str(e)) from e
