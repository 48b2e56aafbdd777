"""LSP0 ERC725Account deployment.

The account is the root of the profile dependency graph:
the key manager and the account setup need its address.
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


def account_deployment(
    factory: ContractFactory,
    provider: ChainProvider,
    signer_address: HexAddress,
    base_contract_addresses: BaseContractAddresses | Awaitable[BaseContractAddresses] | None = None,
    is_signer_universal_profile: bool | Awaitable[bool] = False,
    bytecode: bytes | str | None = None,
    config: DeploymentConfig | None = None,
) -> DeploymentStream:
    """Deploy the account contract, owned by the signer.

    The owner is passed as a constructor argument, or to ``initialize(address)``
    when deploying a proxy.

    :param signer_address:
        Initial owner of the account

    :param base_contract_addresses:
        Base contracts, or an awaitable resolving to them

    :param is_signer_universal_profile:
        Is the signer a profile contract instead of an EOA, or an awaitable resolving to this

    :param bytecode:
        Custom creation bytecode

    :return:
        Shared event stream. The pipeline starts on the first subscription.
    """
    config = config or DEFAULT_CONFIG
    role = ContractRole.account

    async def _initialize_args() -> list:
        return [signer_address]

    async def _events():
        base_addresses, is_profile = await join(
            resolve(base_contract_addresses),
            resolve(is_signer_universal_profile),
        )
        base_addresses = base_addresses or BaseContractAddresses()

        async for event in contract_deployment_events(
            factory,
            provider,
            role,
            constructor_args=[signer_address],
            initialize_args=_initialize_args,
            address_source=ReceiptAddressSource.for_signer(is_profile),
            base_contract_address=base_addresses.get(role),
            bytecode=bytecode,
            config=config,
        ):
            yield event

    return DeploymentStream(_events, name="account", role=role)
