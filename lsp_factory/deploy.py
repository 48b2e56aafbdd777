"""Deploy one profile contract.

Compose the deployment strategy, the receipt waiter and the proxy initializer
into a single pipeline. The events come out in strict order:

1. Deployment submitted
2. Deployment confirmed
3. ``initialize()`` submitted, proxies only
4. ``initialize()`` confirmed, proxies only
"""

import logging
from typing import AsyncIterator, Sequence

from eth_typing import HexAddress

from lsp_factory.config import DEFAULT_CONFIG, DeploymentConfig
from lsp_factory.constants import ContractRole
from lsp_factory.errors import DeploymentStage
from lsp_factory.events import DeploymentEvent, DeploymentType
from lsp_factory.initialize import InitializeArgsFactory, initialize_proxy
from lsp_factory.interfaces import ChainProvider, ContractFactory
from lsp_factory.receipt import ReceiptAddressSource, wait_for_receipt
from lsp_factory.strategy import submit_deployment

logger = logging.getLogger(__name__)


async def contract_deployment_events(
    factory: ContractFactory,
    provider: ChainProvider,
    role: ContractRole,
    constructor_args: Sequence,
    initialize_args: InitializeArgsFactory,
    address_source: ReceiptAddressSource,
    base_contract_address: HexAddress | None = None,
    bytecode: bytes | str | None = None,
    config: DeploymentConfig = DEFAULT_CONFIG,
) -> AsyncIterator[DeploymentEvent]:
    """Run the deployment pipeline of a single contract.

    :param constructor_args:
        Arguments for the bytecode deployment paths

    :param initialize_args:
        Arguments for the proxy path ``initialize()`` call

    :param address_source:
        How to find the created contract address in receipts
    """
    deployment = await submit_deployment(
        factory,
        role,
        constructor_args,
        base_contract_address=base_contract_address,
        bytecode=bytecode,
        config=config,
    )
    yield deployment

    deployment_receipt = await wait_for_receipt(provider, deployment, DeploymentStage.deployment, address_source, config)
    if deployment_receipt is None:
        return
    yield deployment_receipt

    if deployment_receipt.type != DeploymentType.proxy:
        return

    async for event in initialize_proxy(
        factory,
        provider,
        deployment_receipt,
        initialize_args,
        config.get_initialize_signature(role),
        address_source,
        config,
    ):
        yield event
