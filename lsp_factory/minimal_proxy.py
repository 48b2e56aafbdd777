"""ERC-1167 minimal proxy.

A 45 byte contract forwarding every call with ``DELEGATECALL`` to a fixed implementation.

`See EIP-1167 <https://eips.ethereum.org/EIPS/eip-1167>`_.
"""

from eth_typing import HexAddress
from hexbytes import HexBytes
from web3 import Web3

#: Init code copying the runtime code into memory and returning it
_CREATION_PREFIX = HexBytes("0x3d602d80600a3d3981f3")

#: Runtime code before the 20 byte implementation address
_RUNTIME_PREFIX = HexBytes("0x363d3d373d3d3d363d73")

#: Runtime code after the implementation address
_RUNTIME_SUFFIX = HexBytes("0x5af43d82803e903d91602b57fd5bf3")


def get_minimal_proxy_runtime_code(implementation: HexAddress) -> HexBytes:
    """Bytecode of a deployed proxy delegating to ``implementation``."""
    address = HexBytes(Web3.to_checksum_address(implementation))
    return HexBytes(_RUNTIME_PREFIX + address + _RUNTIME_SUFFIX)


def get_minimal_proxy_creation_code(implementation: HexAddress) -> HexBytes:
    """Creation bytecode deploying a proxy delegating to ``implementation``."""
    return HexBytes(_CREATION_PREFIX + get_minimal_proxy_runtime_code(implementation))

