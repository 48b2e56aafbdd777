"""Capabilities the deployment pipelines need from the outside world.

The pipelines do not talk to JSON-RPC directly. They go through:

- :py:class:`ContractFactory`, bound to a signer: deploys contracts and proxies, sends calls

- :py:class:`ChainProvider`: reads chain state and waits for receipts

See :py:mod:`lsp_factory.web3_backend` for the web3.py implementation.
"""

from dataclasses import dataclass
from typing import Protocol, Sequence, runtime_checkable

from eth_typing import HexAddress
from hexbytes import HexBytes

from lsp_factory.constants import ContractRole


@dataclass(slots=True, frozen=True)
class BaseContractAddresses:
    """Already deployed base ("library") contracts to point proxies to.

    Contracts without a base address are deployed standalone.
    """

    account: HexAddress | None = None

    key_manager: HexAddress | None = None

    universal_receiver: HexAddress | None = None

    def get(self, role: ContractRole) -> HexAddress | None:
        return getattr(self, role.name)


@dataclass(slots=True, frozen=True)
class ContractHandle:
    """A contract we have attached to, but not deployed."""

    role: ContractRole

    address: HexAddress


@dataclass(slots=True, frozen=True)
class PendingDeployment:
    """An in-flight contract creation.

    For proxy deployments ``base_address`` is the attached implementation.
    """

    role: ContractRole

    #: Creation transaction, already broadcast
    tx_hash: HexBytes

    #: Implementation contract the proxy delegates to
    base_address: HexAddress | None = None

    @property
    def is_proxy(self) -> bool:
        return self.base_address is not None


@runtime_checkable
class ContractFactory(Protocol):
    """Deploy and call profile contracts on behalf of a signer."""

    #: Whether the signer is a universal profile contract.
    #:
    #: ``None`` if the factory cannot tell and it must be read from the chain.
    is_signer_universal_profile: bool | None

    async def deploy_standalone(
        self,
        role: ContractRole,
        bytecode: bytes | None,
        constructor_args: Sequence,
        gas: int,
    ) -> PendingDeployment:
        """Deploy full contract bytecode.

        :param bytecode:
            Custom creation bytecode, or ``None`` for the role's default compiled bytecode.
        """
        ...

    async def attach(self, role: ContractRole, address: HexAddress) -> ContractHandle:
        """Refer to an already deployed base contract."""
        ...

    async def deploy_proxy(self, role: ContractRole, base_address: HexAddress, gas: int) -> PendingDeployment:
        """Deploy a minimal proxy delegating to ``base_address``."""
        ...

    async def transact(
        self,
        role: ContractRole,
        address: HexAddress,
        function_signature: str,
        args: Sequence,
        gas: int,
    ) -> HexBytes:
        """Broadcast a contract call and return its transaction hash."""
        ...


@runtime_checkable
class ChainProvider(Protocol):
    """Read-only chain access."""

    async def get_code(self, address: HexAddress) -> bytes:
        """Get deployed bytecode, empty if there is no contract."""
        ...

    async def wait_for_receipt(self, tx_hash: HexBytes) -> dict:
        """Suspend until the transaction is mined."""
        ...
