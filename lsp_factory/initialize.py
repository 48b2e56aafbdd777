"""Proxy initialisation.

A minimal proxy has no constructor. Its instance state, like the owner,
is set by calling ``initialize(...)`` once the proxy deployment is confirmed.
"""

import logging
from typing import AsyncIterator, Awaitable, Callable, Sequence

from eth_typing import HexAddress

from lsp_factory.config import DEFAULT_CONFIG, DeploymentConfig
from lsp_factory.constants import ContractRole
from lsp_factory.errors import (
    AccountSetupFailed,
    AddressResolutionFailed,
    DeploymentFailed,
    DeploymentStage,
    InitializationFailed,
)
from lsp_factory.events import DeploymentEvent, DeploymentStatus, DeploymentType
from lsp_factory.interfaces import ChainProvider, ContractFactory
from lsp_factory.receipt import ReceiptAddressSource, wait_for_receipt

logger = logging.getLogger(__name__)


#: Async thunk giving the initializer arguments, as some of them
#: are known only after another pipeline has completed
InitializeArgsFactory = Callable[[], Awaitable[Sequence]]


#: What to raise when the node rejects a contract call
_SUBMISSION_ERRORS = {
    DeploymentStage.initialization: InitializationFailed,
    DeploymentStage.setup: AccountSetupFailed,
}


def get_function_name(function_signature: str) -> str:
    """``initialize(address)`` -> ``initialize``"""
    return function_signature.split("(")[0]


async def transact_and_confirm(
    factory: ContractFactory,
    provider: ChainProvider,
    role: ContractRole,
    address: HexAddress,
    function_signature: str,
    args: Sequence,
    stage: DeploymentStage,
    deployment_type: DeploymentType = DeploymentType.contract,
    config: DeploymentConfig = DEFAULT_CONFIG,
) -> AsyncIterator[DeploymentEvent]:
    """Call a deployed contract and wait for the receipt.

    Emits a pending and a complete event.
    """
    try:
        tx_hash = await factory.transact(role, address, function_signature, args, config.call_gas_limit)
    except DeploymentFailed:
        raise
    except Exception as e:
        error_class = _SUBMISSION_ERRORS[stage]
        raise error_class(role, stage, f"Could not broadcast {function_signature} to {address}: {e}") from e

    pending = DeploymentEvent(
        type=deployment_type,
        contract_name=role,
        status=DeploymentStatus.pending,
        transaction_hash=tx_hash,
        address=address,
        function_name=get_function_name(function_signature),
    )
    logger.info("Submitted %s with args %s", pending, args)
    yield pending

    confirmed = await wait_for_receipt(provider, pending, stage, config=config)
    yield confirmed


async def initialize_proxy(
    factory: ContractFactory,
    provider: ChainProvider,
    deployment_receipt: DeploymentEvent,
    args_factory: InitializeArgsFactory,
    function_signature: str,
    address_source: ReceiptAddressSource,
    config: DeploymentConfig = DEFAULT_CONFIG,
) -> AsyncIterator[DeploymentEvent]:
    """Initialise a freshly deployed proxy.

    :param deployment_receipt:
        Complete event of the proxy deployment

    :param args_factory:
        Gives the initializer arguments

    :param function_signature:
        E.g. ``initialize(address)``

    :param address_source:
        How to find the proxy address in the receipt
    """
    role = deployment_receipt.contract_name

    assert deployment_receipt.type == DeploymentType.proxy, f"Only proxies are initialised, got {deployment_receipt}"
    assert deployment_receipt.status == DeploymentStatus.complete, f"Proxy deployment not confirmed: {deployment_receipt}"

    address = address_source.extract(deployment_receipt.receipt)
    if address is None:
        raise AddressResolutionFailed(role, DeploymentStage.initialization, "Cannot find the proxy to initialise", deployment_receipt.transaction_hash)

    args = await args_factory()

    async for event in transact_and_confirm(
        factory,
        provider,
        role,
        address,
        function_signature,
        args,
        DeploymentStage.initialization,
        deployment_type=DeploymentType.proxy,
        config=config,
    ):
        yield event
