"""Deployment error taxonomy.

Every failure raised from a deployment pipeline is a :py:class:`DeploymentFailed`
subclass carrying the contract role and the stage that failed. Callers can use
these to tell which on-chain side effects already happened.

Nothing is retried or recovered inside the pipelines.
"""

import enum

from hexbytes import HexBytes

from lsp_factory.constants import ContractRole


class DeploymentStage(enum.Enum):
    """Which step of a contract pipeline failed."""

    #: Contract or proxy deployment transaction
    deployment = "deployment"

    #: initialize() call on a freshly deployed proxy
    initialization = "initialization"

    #: setDataBatch() and transferOwnership() on the account
    setup = "setup"


class DeploymentFailed(Exception):
    """A contract pipeline could not complete."""

    def __init__(
        self,
        role: ContractRole,
        stage: DeploymentStage,
        msg: str,
        tx_hash: HexBytes | None = None,
    ):
        if tx_hash is not None:
            tx_hash = HexBytes(tx_hash)
        tx_text = f", tx hash 0x{bytes(tx_hash).hex()}" if tx_hash else ""
        super().__init__(f"{role.value} {stage.value} failed: {msg}{tx_text}")
        self.role = role
        self.stage = stage
        self.tx_hash = tx_hash


class DeploymentSubmissionFailed(DeploymentFailed):
    """JSON-RPC node rejected the deployment transaction.

    Insufficient funds, nonce conflict or network failure.
    """


class DeploymentReverted(DeploymentFailed):
    """Deployment transaction was mined but its execution reverted."""


class ReceiptTimeout(DeploymentFailed):
    """Receipt did not arrive within the configured timeout."""


class InitializationFailed(DeploymentFailed):
    """Proxy initialize() call could not be broadcast or it reverted."""


class AddressResolutionFailed(DeploymentFailed):
    """Receipt did not contain an extractable contract address."""


class AccountSetupFailed(DeploymentFailed):
    """Writing the account data or handing over the ownership failed."""


class BroadcastFailure(Exception):
    """Could not broadcast a transaction for some reason."""


class DeploymentCancelled(Exception):
    """Pipeline was cancelled before it completed.

    Raised to every subscriber of a cancelled pipeline.
    Transactions broadcast before the cancellation are not rolled back.
    """

    def __init__(self, name: str, role: ContractRole | None = None, events_emitted: int = 0):
        super().__init__(f"Pipeline {name} cancelled after {events_emitted} events")
        self.name = name
        self.role = role
        self.events_emitted = events_emitted
