"""Universal profile deployment.

Deploy the account, the key manager and the universal receiver delegate
and merge their events into one stream.

Dependencies between the pipelines:

- The account pipeline starts immediately

- The key manager and the universal receiver pipelines start once the account
  transaction has been submitted, the base contract addresses are known and
  we know whether the signer is a profile contract

- The key manager deployment is broadcast only after the account receipt

- Optional account setup runs after all three are done

Example:

.. code-block:: python

    from web3 import AsyncWeb3

    from lsp_factory.hotwallet import HotWallet
    from lsp_factory.profile import deploy_universal_profile
    from lsp_factory.web3_backend import Web3ChainProvider, Web3ContractFactory

    web3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(json_rpc_url))
    wallet = HotWallet.from_private_key(private_key)
    await wallet.sync_nonce(web3)

    factory = Web3ContractFactory(web3, wallet, artifacts)
    provider = Web3ChainProvider(web3)

    stream = deploy_universal_profile(factory, provider, wallet.address)
    async for event in stream:
        print(event)

    profile = await stream.result()
    print(f"Profile deployed at {profile.account}")
"""

import logging
from dataclasses import dataclass
from typing import Awaitable

from eth_typing import HexAddress
from hexbytes import HexBytes

from lsp_factory.account import account_deployment
from lsp_factory.account_setup import account_setup_deployment
from lsp_factory.config import DEFAULT_CONFIG, DeploymentConfig
from lsp_factory.constants import EIP7702_DELEGATION_PREFIX
from lsp_factory.events import DeploymentEvent
from lsp_factory.interfaces import BaseContractAddresses, ChainProvider, ContractFactory
from lsp_factory.key_manager import key_manager_deployment
from lsp_factory.stream import DeploymentStream, join, merge, resolve, share
from lsp_factory.universal_receiver import universal_receiver_delegate_deployment

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ProfileDeployment:
    """Outcome of a completed profile deployment."""

    account: HexAddress

    key_manager: HexAddress

    universal_receiver: HexAddress

    #: All emitted events in emission order
    events: list[DeploymentEvent]


class ProfileDeploymentStream(DeploymentStream):
    """Merged event stream of all profile pipelines.

    Component pipelines are available once the orchestration has got that far.
    """

    def __init__(self, producer, name: str):
        super().__init__(producer, name)
        self.account: DeploymentStream | None = None
        self.key_manager: DeploymentStream | None = None
        self.universal_receiver: DeploymentStream | None = None
        self.account_setup: DeploymentStream | None = None

    def get_pipelines(self) -> list[DeploymentStream]:
        """Component pipelines created so far."""
        return [s for s in (self.account, self.key_manager, self.universal_receiver, self.account_setup) if s is not None]

    async def result(self) -> ProfileDeployment:
        """Wait for the whole deployment and get the contract addresses.

        Does not broadcast anything if the stream has already run.
        """
        events = await self.collect()
        account, key_manager, universal_receiver = await join(
            self.account.resolve_address(),
            self.key_manager.resolve_address(),
            self.universal_receiver.resolve_address(),
        )
        return ProfileDeployment(
            account=account,
            key_manager=key_manager,
            universal_receiver=universal_receiver,
            events=events,
        )


async def is_universal_profile(provider: ChainProvider, address: HexAddress) -> bool:
    """Check whether an address is a contract rather than an EOA.

    A signer that is a contract is assumed to be a universal profile.
    EIP-7702 delegated EOAs are EOAs.
    """
    code = HexBytes(await provider.get_code(address))
    if code.startswith(HexBytes(EIP7702_DELEGATION_PREFIX)):
        return False
    return len(code) > 0


def deploy_universal_profile(
    factory: ContractFactory,
    provider: ChainProvider,
    signer_address: HexAddress,
    base_contract_addresses: BaseContractAddresses | Awaitable[BaseContractAddresses] | None = None,
    provided_universal_receiver_address: HexAddress | None = None,
    default_universal_receiver_address: HexAddress | None = None,
    account_bytecode: bytes | str | None = None,
    key_manager_bytecode: bytes | str | None = None,
    universal_receiver_bytecode: bytes | str | None = None,
    is_signer_universal_profile: bool | Awaitable[bool] | None = None,
    configure_account: bool = False,
    config: DeploymentConfig | None = None,
) -> ProfileDeploymentStream:
    """Deploy a universal profile.

    - If any pipeline fails, the remaining stages of the other pipelines are cancelled,
      pipelines not yet started are never started, and the error is raised from the stream

    - Already mined transactions are not rolled back

    - The stream is shared: iterating it many times broadcasts each transaction only once

    :param signer_address:
        Address of the signer ``factory`` is using. Becomes the profile controller.

    :param base_contract_addresses:
        Base contracts to deploy proxies for, or an awaitable resolving to them

    :param provided_universal_receiver_address:
        Use this universal receiver delegate instead of deploying one

    :param default_universal_receiver_address:
        Reuse the delegate at this address if it has been deployed

    :param is_signer_universal_profile:
        Signer type if known. If not given, asked from the factory,
        and if the factory does not know, read from the chain.

    :param configure_account:
        Register the universal receiver delegate, set permissions
        and transfer the account to the key manager after the deployments.

    :return:
        Shared event stream. Nothing happens until it is iterated.
    """
    config = config or DEFAULT_CONFIG

    async def _events():
        if is_signer_universal_profile is not None:
            signer_type = share(is_signer_universal_profile)
        elif factory.is_signer_universal_profile is not None:
            signer_type = factory.is_signer_universal_profile
        else:
            signer_type = share(is_universal_profile(provider, signer_address))
        base_addresses = share(base_contract_addresses)

        stream.account = account_deployment(
            factory,
            provider,
            signer_address,
            base_addresses,
            signer_type,
            bytecode=account_bytecode,
            config=config,
        )

        try:
            _, resolved_base_addresses, resolved_signer_type = await join(
                stream.account.first(),
                resolve(base_addresses),
                resolve(signer_type),
            )

            logger.info("Account deployment started, signer %s is profile: %s", signer_address, resolved_signer_type)

            stream.key_manager = key_manager_deployment(
                factory,
                provider,
                stream.account,
                resolved_base_addresses,
                resolved_signer_type,
                bytecode=key_manager_bytecode,
                config=config,
            )

            stream.universal_receiver = universal_receiver_delegate_deployment(
                factory,
                provider,
                resolved_base_addresses,
                provided_address=provided_universal_receiver_address,
                default_address=default_universal_receiver_address,
                bytecode=universal_receiver_bytecode,
                is_signer_universal_profile=resolved_signer_type,
                config=config,
            )

            async for event in merge(stream.account, stream.key_manager, stream.universal_receiver):
                yield event

            if configure_account:
                stream.account_setup = account_setup_deployment(
                    factory,
                    provider,
                    signer_address,
                    stream.account,
                    stream.key_manager,
                    stream.universal_receiver,
                    config=config,
                )
                async for event in stream.account_setup:
                    yield event

        except BaseException:
            for pipeline in stream.get_pipelines():
                pipeline.cancel()
            raise

    stream = ProfileDeploymentStream(_events, name="universal-profile")
    return stream
