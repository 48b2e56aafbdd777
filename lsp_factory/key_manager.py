"""LSP6 KeyManager deployment.

The key manager is bound to the account it controls,
so its deployment waits for the account pipeline to complete.
"""

import logging
from typing import Awaitable

from lsp_factory.config import DEFAULT_CONFIG, DeploymentConfig
from lsp_factory.constants import ContractRole
from lsp_factory.deploy import contract_deployment_events
from lsp_factory.errors import AddressResolutionFailed, DeploymentStage
from lsp_factory.interfaces import BaseContractAddresses, ChainProvider, ContractFactory
from lsp_factory.receipt import ReceiptAddressSource
from lsp_factory.stream import DeploymentStream, join, resolve

logger = logging.getLogger(__name__)


def key_manager_deployment(
    factory: ContractFactory,
    provider: ChainProvider,
    account_deployment: DeploymentStream,
    base_contract_addresses: BaseContractAddresses | Awaitable[BaseContractAddresses] | None = None,
    is_signer_universal_profile: bool | Awaitable[bool] = False,
    bytecode: bytes | str | None = None,
    config: DeploymentConfig | None = None,
) -> DeploymentStream:
    """Deploy the key manager for an account being deployed.

    - Waits for the account stream, the base contracts and the signer type

    - The account address goes to the constructor, or to ``initialize(address)`` for proxies

    :param account_deployment:
        Stream from :py:func:`lsp_factory.account.account_deployment`

    :return:
        Shared event stream. The pipeline starts on the first subscription.
    """
    config = config or DEFAULT_CONFIG
    role = ContractRole.key_manager

    async def _events():
        account_receipt, base_addresses, is_profile = await join(
            account_deployment.confirmed_deployment(),
            resolve(base_contract_addresses),
            resolve(is_signer_universal_profile),
        )
        base_addresses = base_addresses or BaseContractAddresses()
        address_source = ReceiptAddressSource.for_signer(is_profile)

        if account_receipt is None:
            raise AddressResolutionFailed(role, DeploymentStage.deployment, "Account pipeline did not deploy an account")

        account_address = address_source.extract(account_receipt.receipt)
        if account_address is None:
            raise AddressResolutionFailed(role, DeploymentStage.deployment, "No account address in the account receipt", account_receipt.transaction_hash)

        logger.debug("Deploying key manager for account %s", account_address)

        async def _initialize_args() -> list:
            return [account_address]

        async for event in contract_deployment_events(
            factory,
            provider,
            role,
            constructor_args=[account_address],
            initialize_args=_initialize_args,
            address_source=address_source,
            base_contract_address=base_addresses.get(role),
            bytecode=bytecode,
            config=config,
        ):
            yield event

    return DeploymentStream(_events, name="key-manager", role=role)
