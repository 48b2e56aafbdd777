"""Receipt waiting and contract address extraction.

A deployed contract address is found in one of two places in the receipt:

- Signer is a plain EOA: the standard ``contractAddress`` receipt field

- Signer is itself a universal profile: the contract is created by
  the profile's ``execute()``, so ``contractAddress`` is empty and the
  address is in the ``ContractCreated`` event log

Pick the strategy once per pipeline with :py:meth:`ReceiptAddressSource.for_signer`.
"""

import asyncio
import enum
import logging

from eth_typing import HexAddress
from hexbytes import HexBytes
from web3 import Web3

from lsp_factory.config import DEFAULT_CONFIG, DeploymentConfig
from lsp_factory.constants import CONTRACT_CREATED_TOPIC
from lsp_factory.errors import (
    AccountSetupFailed,
    AddressResolutionFailed,
    DeploymentReverted,
    DeploymentStage,
    InitializationFailed,
    ReceiptTimeout,
)
from lsp_factory.events import DeploymentEvent
from lsp_factory.interfaces import ChainProvider

logger = logging.getLogger(__name__)


#: What to raise when a mined transaction reverted
_REVERT_ERRORS = {
    DeploymentStage.deployment: DeploymentReverted,
    DeploymentStage.initialization: InitializationFailed,
    DeploymentStage.setup: AccountSetupFailed,
}


class ReceiptAddressSource(enum.Enum):
    """Where to read the created contract address from a receipt."""

    #: ``ContractCreated`` log emitted by a universal profile signer
    contract_created_log = "contract_created_log"

    #: Standard ``contractAddress`` receipt field
    contract_address_field = "contract_address_field"

    @classmethod
    def for_signer(cls, is_signer_universal_profile: bool) -> "ReceiptAddressSource":
        if is_signer_universal_profile:
            return cls.contract_created_log
        return cls.contract_address_field

    def extract(self, receipt: dict) -> HexAddress | None:
        """Get the created contract address.

        :return:
            Checksummed address or ``None`` if the receipt does not have one.
        """
        if self == ReceiptAddressSource.contract_created_log:
            for log in receipt.get("logs") or []:
                topics = log.get("topics") or []
                if len(topics) >= 3 and HexBytes(topics[0]) == CONTRACT_CREATED_TOPIC:
                    return Web3.to_checksum_address(HexBytes(topics[2])[-20:])
            return None

        address = receipt.get("contractAddress")
        if not address:
            return None
        return Web3.to_checksum_address(address)


async def wait_for_receipt(
    provider: ChainProvider,
    event: DeploymentEvent,
    stage: DeploymentStage,
    address_source: ReceiptAddressSource = ReceiptAddressSource.contract_address_field,
    config: DeploymentConfig = DEFAULT_CONFIG,
) -> DeploymentEvent | None:
    """Wait for a submitted transaction to be mined.

    - No retries. If ``config.receipt_timeout`` is set, give up after it.

    - For contract creations, resolve the created address from the receipt.

    :param event:
        A pending event.

    :return:
        The matching complete event.

        ``None`` if the event did not broadcast a transaction,
        e.g. we only attached to an existing contract.

    :raise ReceiptTimeout:
        Confirmation did not arrive in time

    :raise DeploymentFailed:
        Transaction reverted, or no contract address in the receipt
    """

    role = event.contract_name
    tx_hash = event.transaction_hash

    if tx_hash is None:
        logger.debug("Nothing to wait for %s, no transaction", event)
        return None

    timeout = config.receipt_timeout
    try:
        if timeout is not None:
            receipt = await asyncio.wait_for(provider.wait_for_receipt(tx_hash), timeout)
        else:
            receipt = await provider.wait_for_receipt(tx_hash)
    except asyncio.TimeoutError as e:
        raise ReceiptTimeout(role, stage, f"No receipt within {timeout} seconds", tx_hash) from e

    if receipt["status"] != 1:
        error_class = _REVERT_ERRORS[stage]
        raise error_class(role, stage, f"Transaction reverted in block {receipt.get('blockNumber')}", tx_hash)

    if event.is_deployment():
        address = address_source.extract(receipt)
        if address is None:
            raise AddressResolutionFailed(role, stage, f"No contract address in the receipt using {address_source.name}", tx_hash)
    else:
        address = event.address

    confirmed = event.confirm(receipt, address)
    logger.info("Confirmed %s in block %s", confirmed, receipt.get("blockNumber"))
    return confirmed
