"""Account setup after all profile contracts are deployed.

- Register the universal receiver delegate in the account ERC725Y storage

- Give the signer (controller) and the universal receiver delegate their LSP6 permissions

- Hand over the account ownership to the key manager

Both calls are made by the signer, who still owns the account at this point.
"""

import logging

from eth_typing import HexAddress
from hexbytes import HexBytes

from lsp_factory.config import DEFAULT_CONFIG, DeploymentConfig
from lsp_factory.constants import (
    LSP1_UNIVERSAL_RECEIVER_DELEGATE_KEY,
    LSP6_ADDRESS_PERMISSIONS_ARRAY_KEY,
    LSP6_ADDRESS_PERMISSIONS_ARRAY_PREFIX,
    LSP6_ADDRESS_PERMISSIONS_PREFIX,
    SET_DATA_BATCH_SIGNATURE,
    TRANSFER_OWNERSHIP_SIGNATURE,
    ContractRole,
)
from lsp_factory.errors import AccountSetupFailed, DeploymentStage
from lsp_factory.initialize import transact_and_confirm
from lsp_factory.interfaces import ChainProvider, ContractFactory
from lsp_factory.stream import DeploymentStream, join

logger = logging.getLogger(__name__)


def get_permissions_array_element_key(index: int) -> HexBytes:
    """ERC725Y key for ``AddressPermissions[index]``."""
    return HexBytes(HexBytes(LSP6_ADDRESS_PERMISSIONS_ARRAY_PREFIX) + index.to_bytes(16, "big"))


def get_permissions_key(address: HexAddress) -> HexBytes:
    """ERC725Y key for ``AddressPermissions:Permissions:<address>``."""
    return HexBytes(HexBytes(LSP6_ADDRESS_PERMISSIONS_PREFIX) + HexBytes(address))


def build_account_setup_data(
    controller_address: HexAddress,
    universal_receiver_address: HexAddress,
    config: DeploymentConfig = DEFAULT_CONFIG,
) -> tuple[list[HexBytes], list[HexBytes]]:
    """Build ``setDataBatch()`` keys and values.

    :return:
        Tuple (keys, values)
    """
    controllers = [controller_address, universal_receiver_address]

    keys = [
        HexBytes(LSP1_UNIVERSAL_RECEIVER_DELEGATE_KEY),
        HexBytes(LSP6_ADDRESS_PERMISSIONS_ARRAY_KEY),
    ]
    values = [
        HexBytes(universal_receiver_address),
        HexBytes(len(controllers).to_bytes(16, "big")),
    ]

    for index, controller in enumerate(controllers):
        keys.append(get_permissions_array_element_key(index))
        values.append(HexBytes(controller))

    keys.append(get_permissions_key(controller_address))
    values.append(HexBytes(config.controller_permissions))

    keys.append(get_permissions_key(universal_receiver_address))
    values.append(HexBytes(config.universal_receiver_permissions))

    return keys, values


def account_setup_deployment(
    factory: ContractFactory,
    provider: ChainProvider,
    signer_address: HexAddress,
    account_deployment: DeploymentStream,
    key_manager_deployment: DeploymentStream,
    universal_receiver_deployment: DeploymentStream,
    config: DeploymentConfig | None = None,
) -> DeploymentStream:
    """Configure the account once the profile contracts are deployed.

    Emits pending and complete events for ``setDataBatch`` and ``transferOwnership``.

    :param signer_address:
        The controller to get the full permissions

    :return:
        Shared event stream. The pipeline starts on the first subscription.
    """
    config = config or DEFAULT_CONFIG
    role = ContractRole.account

    async def _events():
        account_address, key_manager_address, universal_receiver_address = await join(
            account_deployment.resolve_address(),
            key_manager_deployment.resolve_address(),
            universal_receiver_deployment.resolve_address(),
        )

        if not (account_address and key_manager_address and universal_receiver_address):
            raise AccountSetupFailed(
                role,
                DeploymentStage.setup,
                f"Missing contract addresses, account: {account_address}, key manager: {key_manager_address}, universal receiver: {universal_receiver_address}",
            )

        logger.info("Setting up account %s, key manager %s, universal receiver %s", account_address, key_manager_address, universal_receiver_address)

        keys, values = build_account_setup_data(signer_address, universal_receiver_address, config)

        async for event in transact_and_confirm(factory, provider, role, account_address, SET_DATA_BATCH_SIGNATURE, [keys, values], DeploymentStage.setup, config=config):
            yield event

        async for event in transact_and_confirm(factory, provider, role, account_address, TRANSFER_OWNERSHIP_SIGNATURE, [key_manager_address], DeploymentStage.setup, config=config):
            yield event

    return DeploymentStream(_events, name="account-setup", role=role)
