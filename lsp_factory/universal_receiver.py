"""LSP1 UniversalReceiverDelegateUP deployment.

The universal receiver delegate does not depend on the other profile contracts.
It is often shared between profiles, so we first check whether we can reuse an existing one.
"""

import logging
from typing import Awaitable

from eth_typing import HexAddress

from lsp_factory.config import DEFAULT_CONFIG, DeploymentConfig
from lsp_factory.constants import ContractRole
from lsp_factory.deploy import contract_deployment_events
from lsp_factory.interfaces import BaseContractAddresses, ChainProvider, ContractFactory
from lsp_factory.receipt import ReceiptAddressSource
from lsp_factory.stream import DeploymentStream, join, resolve

logger = logging.getLogger(__name__)


def universal_receiver_delegate_deployment(
    factory: ContractFactory,
    provider: ChainProvider,
    base_contract_addresses: BaseContractAddresses | Awaitable[BaseContractAddresses] | None = None,
    provided_address: HexAddress | None = None,
    default_address: HexAddress | None = None,
    bytecode: bytes | str | None = None,
    is_signer_universal_profile: bool | Awaitable[bool] = False,
    config: DeploymentConfig | None = None,
) -> DeploymentStream:
    """Deploy the universal receiver delegate, unless we can reuse one.

    The decision is made in this order:

    1. Base contract address or bytecode given: deploy a proxy or the bytecode

    2. ``provided_address`` given, or there is code at ``default_address``: deploy nothing

    3. Deploy the default bytecode

    The code at the default address is always read first.

    :param provided_address:
        A receiver delegate the caller has deployed already

    :param default_address:
        Well-known shared receiver delegate of the network

    :return:
        Shared event stream. The pipeline starts on the first subscription.
        When no deployment is done, the stream is empty and its
        :py:meth:`~lsp_factory.stream.DeploymentStream.resolve_address` gives the reused address.
    """
    config = config or DEFAULT_CONFIG
    role = ContractRole.universal_receiver

    async def _initialize_args() -> list:
        return []

    async def _events():
        checked_address = default_address or config.null_address
        default_bytecode, base_addresses, is_profile = await join(
            provider.get_code(checked_address),
            resolve(base_contract_addresses),
            resolve(is_signer_universal_profile),
        )
        base_addresses = base_addresses or BaseContractAddresses()
        base_contract_address = base_addresses.get(role)

        if not (base_contract_address or bytecode):
            if provided_address or len(default_bytecode) > 0:
                reused = provided_address or checked_address
                logger.info("Reusing universal receiver delegate at %s", reused)
                stream.fallback_address = reused
                return

        async for event in contract_deployment_events(
            factory,
            provider,
            role,
            constructor_args=[],
            initialize_args=_initialize_args,
            address_source=ReceiptAddressSource.for_signer(is_profile),
            base_contract_address=base_contract_address,
            bytecode=bytecode,
            config=config,
        ):
            yield event

    stream = DeploymentStream(_events, name="universal-receiver", role=role)
    return stream
