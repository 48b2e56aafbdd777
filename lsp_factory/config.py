"""Deployment configuration.

All tunables consumed by the deployment pipelines live in
:py:class:`DeploymentConfig`. The config is passed down explicitly to every
pipeline, so tests can run against a fake chain with different settings.

Example:

.. code-block:: python

    from lsp_factory.config import DeploymentConfig

    config = DeploymentConfig(receipt_timeout=120.0)
    stream = deploy_universal_profile(factory, provider, signer_address, config=config)
"""

import logging
import os
from dataclasses import dataclass

from lsp_factory.constants import (
    ALL_PERMISSIONS,
    DEFAULT_CALL_GAS_LIMIT,
    DEFAULT_GAS_LIMIT,
    DEFAULT_PROXY_GAS_LIMIT,
    INITIALIZE_SIGNATURES,
    UNIVERSAL_RECEIVER_PERMISSIONS,
    ZERO_ADDRESS,
    ContractRole,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class DeploymentConfig:
    """Process-wide immutable deployment settings.

    :param gas_limit: Gas ceiling for a standalone contract deployment
    :param proxy_gas_limit: Gas ceiling for a minimal proxy deployment
    :param call_gas_limit: Gas ceiling for initialize() and account setup calls
    :param null_address: Address checked when no default universal receiver address is given
    :param account_initialize_signature: Initializer of the account base contract
    :param key_manager_initialize_signature: Initializer of the key manager base contract
    :param universal_receiver_initialize_signature: Initializer of the universal receiver base contract
    :param receipt_timeout: Seconds to wait for a single receipt, ``None`` waits forever
    :param controller_permissions: LSP6 permissions granted to the signer during account setup
    :param universal_receiver_permissions: LSP6 permissions granted to the universal receiver delegate during account setup
    """

    gas_limit: int = DEFAULT_GAS_LIMIT
    proxy_gas_limit: int = DEFAULT_PROXY_GAS_LIMIT
    call_gas_limit: int = DEFAULT_CALL_GAS_LIMIT
    null_address: str = ZERO_ADDRESS
    account_initialize_signature: str = INITIALIZE_SIGNATURES[ContractRole.account]
    key_manager_initialize_signature: str = INITIALIZE_SIGNATURES[ContractRole.key_manager]
    universal_receiver_initialize_signature: str = INITIALIZE_SIGNATURES[ContractRole.universal_receiver]
    receipt_timeout: float | None = None
    controller_permissions: str = ALL_PERMISSIONS
    universal_receiver_permissions: str = UNIVERSAL_RECEIVER_PERMISSIONS

    def get_initialize_signature(self, role: ContractRole) -> str:
        """Get the initializer function signature for a proxied contract."""
        match role:
            case ContractRole.account:
                return self.account_initialize_signature
            case ContractRole.key_manager:
                return self.key_manager_initialize_signature
            case ContractRole.universal_receiver:
                return self.universal_receiver_initialize_signature
            case _:
                raise ValueError(f"Unknown contract role: {role}")


#: Used when the caller does not pass a config
DEFAULT_CONFIG = DeploymentConfig()


def create_deployment_config_from_env() -> DeploymentConfig:
    """Create DeploymentConfig from environment variables.

    Environment variables:
    - LSP_FACTORY_GAS_LIMIT: Standalone deployment gas ceiling (default: 3,000,000)
    - LSP_FACTORY_PROXY_GAS_LIMIT: Proxy deployment gas ceiling (default: 200,000)
    - LSP_FACTORY_CALL_GAS_LIMIT: initialize() and setup call gas ceiling (default: 1,000,000)
    - LSP_FACTORY_RECEIPT_TIMEOUT: Seconds to wait for a receipt (default: wait forever)

    :return: Configured DeploymentConfig instance
    """

    def get_int(key: str, default: int) -> int:
        value = os.environ.get(key)
        return int(value) if value else default

    def get_float(key: str, default: float | None) -> float | None:
        value = os.environ.get(key)
        return float(value) if value else default

    config = DeploymentConfig(
        gas_limit=get_int("LSP_FACTORY_GAS_LIMIT", DEFAULT_GAS_LIMIT),
        proxy_gas_limit=get_int("LSP_FACTORY_PROXY_GAS_LIMIT", DEFAULT_PROXY_GAS_LIMIT),
        call_gas_limit=get_int("LSP_FACTORY_CALL_GAS_LIMIT", DEFAULT_CALL_GAS_LIMIT),
        receipt_timeout=get_float("LSP_FACTORY_RECEIPT_TIMEOUT", None),
    )
    logger.debug("Deployment config from environment: %s", config)
    return config
