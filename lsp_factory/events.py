"""Deployment events emitted by the pipelines.

Each contract pipeline emits one event when a transaction is broadcast
(:py:attr:`DeploymentStatus.pending`) and one when its receipt is confirmed
(:py:attr:`DeploymentStatus.complete`).
"""

import enum
from dataclasses import dataclass, field, replace

from eth_typing import HexAddress
from hexbytes import HexBytes

from lsp_factory.constants import ContractRole


class DeploymentType(enum.Enum):
    """How the contract was brought on-chain."""

    #: Full contract bytecode deployment, or a call to a deployed contract
    contract = "CONTRACT"

    #: ERC-1167 minimal proxy pointing to a base contract
    proxy = "PROXY"


class DeploymentStatus(enum.Enum):
    """Submitted vs. confirmed."""

    pending = "PENDING"

    complete = "COMPLETE"


@dataclass(slots=True, frozen=True)
class DeploymentEvent:
    """One step of a contract pipeline.

    Events are never mutated after emission. A confirmation is a new event
    derived from the pending one with :py:meth:`confirm`.
    """

    #: Contract or proxy deployment
    type: DeploymentType

    #: Which profile contract this event is about
    contract_name: ContractRole

    #: Submitted or confirmed
    status: DeploymentStatus

    #: Broadcasted transaction.
    #:
    #: ``None`` when we only attached to an existing contract.
    transaction_hash: HexBytes | None = None

    #: Confirmed transaction receipt, only for complete events
    receipt: dict | None = field(default=None, compare=False)

    #: Deployed address for deployments, called address for function calls.
    #:
    #: For pending deployments this is ``None`` until the receipt is in,
    #: because a profile signer creates contracts through ``execute()``.
    address: HexAddress | None = None

    #: ``None`` for deployments, otherwise the called function e.g. ``initialize``
    function_name: str | None = None

    def __repr__(self):
        tx = f"0x{bytes(self.transaction_hash).hex()}" if self.transaction_hash else "-"
        return f"<DeploymentEvent {self.contract_name.value} {self.type.value} {self.function_name or 'deployment'} {self.status.value} tx:{tx} address:{self.address}>"

    def is_deployment(self) -> bool:
        """This event is about the contract creation, not a call to it."""
        return self.function_name is None

    def confirm(self, receipt: dict, address: HexAddress | None = None) -> "DeploymentEvent":
        """Create the matching complete event."""
        assert self.status == DeploymentStatus.pending, f"Already confirmed: {self}"
        return replace(
            self,
            status=DeploymentStatus.complete,
            receipt=receipt,
            address=address or self.address,
        )
