"""Gas price for deployment transactions.

Gas limits are fixed ceilings from :py:class:`lsp_factory.config.DeploymentConfig`,
here we only figure out how much to pay per gas unit.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from web3 import AsyncWeb3

logger = logging.getLogger(__name__)


class GasPriceMethod(enum.Enum):
    """What method we did use for setting the gas price."""

    #: Legacy chains
    legacy = "legacy"

    #: Post London hard work
    london = "london"


@dataclass
class GasPriceSuggestion:
    """Gas price details.

    - EIP-1559 London hard fork chains

    - Legacy EVM
    """

    #: How the gas price was determined
    method: GasPriceMethod

    #: Non London hard fork chains
    legacy_gas_price: Optional[int] = None

    #: London hard fork chains
    base_fee: Optional[int] = None

    #: London hard fork chains
    max_priority_fee_per_gas: Optional[int] = None

    #: London hard fork chains
    max_fee_per_gas: Optional[int] = None

    def __repr__(self):
        return f"<Gas pricing method:{self.method.name} base:{self.base_fee} priority:{self.max_priority_fee_per_gas} max:{self.max_fee_per_gas} legacy:{self.legacy_gas_price}>"


async def estimate_gas_price(web3: AsyncWeb3, method: GasPriceMethod | None = None) -> GasPriceSuggestion:
    """Get a gas price for a transaction.

    Use EIP-1559 fees when the latest block has a base fee.
    """

    last_block = await web3.eth.get_block("latest")
    base_fee = last_block.get("baseFeePerGas")

    if method is None:
        if base_fee is not None:
            method = GasPriceMethod.london
        else:
            method = GasPriceMethod.legacy

    if method == GasPriceMethod.london:
        max_priority_fee_per_gas = await web3.eth.max_priority_fee
        max_fee_per_gas = max_priority_fee_per_gas + (2 * base_fee)
        suggestion = GasPriceSuggestion(
            method=GasPriceMethod.london,
            base_fee=base_fee,
            max_priority_fee_per_gas=max_priority_fee_per_gas,
            max_fee_per_gas=max_fee_per_gas,
        )
    else:
        suggestion = GasPriceSuggestion(method=GasPriceMethod.legacy, legacy_gas_price=await web3.eth.gas_price)

    logger.debug("Gas price suggestion %s", suggestion)
    return suggestion


def apply_gas(tx: dict, suggestion: GasPriceSuggestion) -> dict:
    """Apply gas fees to a raw transaction dict.

    :return:
        Mutated dict
    """

    assert isinstance(tx, dict), f"Expected tx to be dict, got {type(tx)}"

    if suggestion.method == GasPriceMethod.london:
        tx["maxFeePerGas"] = suggestion.max_fee_per_gas
        tx["maxPriorityFeePerGas"] = suggestion.max_priority_fee_per_gas

        if "gasPrice" in tx:
            # Cannot have both maxFeePerGas + maxPriorityFeePerGas and gasPrice
            del tx["gasPrice"]
    else:
        tx["gasPrice"] = suggestion.legacy_gas_price

    return tx
