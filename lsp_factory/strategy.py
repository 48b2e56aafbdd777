"""Proxy vs. standalone deployment decision.

For every profile contract there are three ways to get it on-chain, checked in this order:

1. A base contract address is given: deploy a minimal proxy pointing to it,
   the proxy is initialised later

2. Custom bytecode is given: deploy it, with the constructor arguments

3. Otherwise deploy the default compiled bytecode of the contract
"""

import enum
import logging
from typing import Sequence

from eth_typing import HexAddress
from hexbytes import HexBytes

from lsp_factory.config import DEFAULT_CONFIG, DeploymentConfig
from lsp_factory.constants import ContractRole
from lsp_factory.errors import DeploymentFailed, DeploymentStage, DeploymentSubmissionFailed
from lsp_factory.events import DeploymentEvent, DeploymentStatus, DeploymentType
from lsp_factory.interfaces import ContractFactory

logger = logging.getLogger(__name__)


class DeploymentPath(enum.Enum):
    """Selected deployment method."""

    #: Attach to a base contract and deploy a proxy for it
    proxy = "proxy"

    #: Deploy caller supplied bytecode
    custom_bytecode = "custom_bytecode"

    #: Deploy the default compiled bytecode
    default_bytecode = "default_bytecode"


def select_deployment_path(
    base_contract_address: HexAddress | None,
    bytecode: bytes | str | None,
) -> DeploymentPath:
    """Choose exactly one deployment path."""
    if base_contract_address:
        return DeploymentPath.proxy
    if bytecode:
        return DeploymentPath.custom_bytecode
    return DeploymentPath.default_bytecode


async def submit_deployment(
    factory: ContractFactory,
    role: ContractRole,
    constructor_args: Sequence,
    base_contract_address: HexAddress | None = None,
    bytecode: bytes | str | None = None,
    config: DeploymentConfig = DEFAULT_CONFIG,
) -> DeploymentEvent:
    """Broadcast the contract creation.

    Failures are not handled here, but tagged with the contract role and passed on.

    :param constructor_args:
        Used for bytecode deployments only.
        Proxies get their arguments in ``initialize()``.

    :return:
        Pending deployment event

    :raise DeploymentSubmissionFailed:
        The node did not accept our transaction
    """

    path = select_deployment_path(base_contract_address, bytecode)
    logger.debug("Deploying %s using %s", role.value, path.name)

    try:
        match path:
            case DeploymentPath.proxy:
                base = await factory.attach(role, base_contract_address)
                pending = await factory.deploy_proxy(role, base.address, config.proxy_gas_limit)
            case DeploymentPath.custom_bytecode:
                pending = await factory.deploy_standalone(role, HexBytes(bytecode), constructor_args, config.gas_limit)
            case DeploymentPath.default_bytecode:
                pending = await factory.deploy_standalone(role, None, constructor_args, config.gas_limit)
    except DeploymentFailed:
        raise
    except Exception as e:
        raise DeploymentSubmissionFailed(role, DeploymentStage.deployment, str(e)) from e

    event = DeploymentEvent(
        type=DeploymentType.proxy if path == DeploymentPath.proxy else DeploymentType.contract,
        contract_name=role,
        status=DeploymentStatus.pending,
        transaction_hash=pending.tx_hash,
    )
    logger.info("Submitted %s", event)
    return event
