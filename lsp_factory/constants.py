"""Universal profile contract constants.

- Contract names, initializer signatures and constructor argument types
  for the three contracts forming a universal profile

- ERC725Y data keys and LSP6 permission values used when setting up the account

- These are the defaults for :py:class:`lsp_factory.config.DeploymentConfig`.
  Pipelines read them through the config, so tests can swap them out.

`See LSP specifications <https://github.com/lukso-network/LIPs/tree/main/LSPs>`_.
"""

import enum

from web3 import Web3


class ContractRole(enum.Enum):
    """The three contracts making up a universal profile.

    The value is the contract name used in deployment events.
    """

    #: LSP0 ERC725Account, the profile itself
    account = "LSP0ERC725Account"

    #: LSP6 KeyManager controlling the account
    key_manager = "LSP6KeyManager"

    #: LSP1 UniversalReceiverDelegateUP reacting to incoming assets
    universal_receiver = "LSP1UniversalReceiverDelegate"


#: Gas ceiling for a non-proxy contract deployment
DEFAULT_GAS_LIMIT = 3_000_000

#: Gas ceiling for deploying an ERC-1167 minimal proxy
DEFAULT_PROXY_GAS_LIMIT = 200_000

#: Gas ceiling for initialize() and account setup calls
DEFAULT_CALL_GAS_LIMIT = 1_000_000

#: Ethereum 0x0000000000000000000000000000000000000000 address as a string.
#:
#: Used as the default universal receiver address when none is configured.
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

#: Initializer signatures of the base ("Init") contract versions
INITIALIZE_SIGNATURES = {
    ContractRole.account: "initialize(address)",
    ContractRole.key_manager: "initialize(address)",
    ContractRole.universal_receiver: "initialize()",
}

#: Constructor argument types of the standalone contract versions
CONSTRUCTOR_ARG_TYPES = {
    ContractRole.account: ["address"],
    ContractRole.key_manager: ["address"],
    ContractRole.universal_receiver: [],
}

#: Emitted by LSP0 execute() when a universal profile creates a contract.
#:
#: The created address is the second indexed topic.
CONTRACT_CREATED_EVENT_SIGNATURE = "ContractCreated(uint256,address,uint256,bytes32)"

CONTRACT_CREATED_TOPIC = Web3.keccak(text=CONTRACT_CREATED_EVENT_SIGNATURE)

#: ERC725Y key ``LSP1UniversalReceiverDelegate``
LSP1_UNIVERSAL_RECEIVER_DELEGATE_KEY = "0x0cfc51aec37c55a4d0b1a65c6255c4bf2fbdf6277f3cc0730c45b828b6db8b47"

#: ERC725Y key ``AddressPermissions[]``, holds the controller array length
LSP6_ADDRESS_PERMISSIONS_ARRAY_KEY = "0xdf30dba06db6a30e65354d9a64c609861f089545ca58c6b4dbe31a5f338cb0e3"

#: Array element keys are the first 16 bytes of the array key followed by uint128 index
LSP6_ADDRESS_PERMISSIONS_ARRAY_PREFIX = "0xdf30dba06db6a30e65354d9a64c60986"

#: ERC725Y mapping prefix ``AddressPermissions:Permissions:<address>``
LSP6_ADDRESS_PERMISSIONS_PREFIX = "0x4b80742de2bf82acb3630000"

#: LSP6 ALL_PERMISSIONS, granted to the controller key
ALL_PERMISSIONS = "0x00000000000000000000000000000000000000000000000000000000007f3f7f"

#: LSP6 SUPER_SETDATA + REENTRANCY, granted to the universal receiver delegate
UNIVERSAL_RECEIVER_PERMISSIONS = "0x0000000000000000000000000000000000000000000000000000000000020080"

#: LSP0 batch setter used during account setup
SET_DATA_BATCH_SIGNATURE = "setDataBatch(bytes32[],bytes[])"

#: Ownable setter used to hand the account over to the key manager
TRANSFER_OWNERSHIP_SIGNATURE = "transferOwnership(address)"

#: EIP-7702 delegation designator.
#:
#: An EOA delegating to contract code has ``0xef0100 || address`` as its code.
#: It still sends its own transactions, so it is not a universal profile.
EIP7702_DELEGATION_PREFIX = "0xef0100"
