"""Hot wallet for signing deployment transactions.

- Create local wallets from a private key

- Manage nonces locally, so that concurrent deployment pipelines sharing
  the same signer never reuse a nonce
"""

import logging
from typing import NamedTuple, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_typing import HexAddress
from hexbytes import HexBytes
from web3 import AsyncWeb3


logger = logging.getLogger(__name__)


class SignedTransactionWithNonce(NamedTuple):
    """A signed transaction with the nonce used to sign it.

    Retains the transaction source, to allow us to diagnose broadcasting failures better.
    """

    #: Bytes to broadcast
    raw_transaction: HexBytes

    #: Transaction hash
    hash: HexBytes

    #: What was the source nonce for this transaction
    nonce: int

    #: Whas was the source address for this trasaction
    address: str

    #: Unencoded transaction data as a dict.
    #:
    #: If broadcast fails, retain the source so we can debug the cause,
    #: like the original gas parameters.
    #:
    source: Optional[dict] = None

    def __repr__(self):
        return f"<SignedTransactionWithNonce hash:0x{bytes(self.hash).hex()} nonce:{self.nonce}>"


class HotWallet:
    """Hot wallet for signing transactions effectively.

    - A hot wallet maintains an plain text private key of an Ethereum address in the process memory
      using :py:class:`eth_account.signers.local.LocalAccount` and nonce counter.

    - Call :py:meth:`sync_nonce` before signing the first transaction.

    .. note ::

        Nonce allocation is safe between asyncio tasks as it never suspends,
        but this class is not thread safe.

    Example:

    .. code-block:: python

        wallet = HotWallet.from_private_key(os.environ["PRIVATE_KEY"])
        await wallet.sync_nonce(web3)
    """

    def __init__(self, account: LocalAccount):
        """Create a hot wallet from a local account."""
        self.account = account
        self.current_nonce: Optional[int] = None

    def __repr__(self):
        return f"<Hot wallet {self.account.address}>"

    @property
    def address(self) -> HexAddress:
        """Ethereum address of the wallet."""
        return self.account.address

    async def sync_nonce(self, web3: AsyncWeb3):
        """Initialise the current nonce from the on-chain data."""
        new_nonce = await web3.eth.get_transaction_count(self.account.address)
        if self.current_nonce:
            if new_nonce < self.current_nonce:
                logger.warning("Nonce sync failed, read onchain nonce %d that is older than our current nonce: %d. This may happen if you have not broadcasted the last transaction yet.", new_nonce, self.current_nonce)
                return
        self.current_nonce = new_nonce
        logger.info("Synced nonce for %s to %d", self.account.address, self.current_nonce)

    def allocate_nonce(self) -> int:
        """Get the next free available nonce to be used with a transaction.

        Ethereum tx nonces are a counter.

        Increase the nonce counter
        """
        assert self.current_nonce is not None, f"Nonce is not yet synced from the blockchain: {self}"
        nonce = self.current_nonce
        self.current_nonce += 1
        return nonce

    def sign_transaction_with_new_nonce(self, tx: dict) -> SignedTransactionWithNonce:
        """Signs a transaction and allocates a nonce for it.

        :param tx:
            Ethereum transaction data as a dict.
            This is modified in-place to include nonce.

        :return:
            A transaction payload and nonce with used to generate this transaction.
        """
        assert type(tx) == dict
        assert "nonce" not in tx
        tx["nonce"] = self.allocate_nonce()
        _signed = self.account.sign_transaction(tx)

        return SignedTransactionWithNonce(
            raw_transaction=HexBytes(_signed.raw_transaction),
            hash=HexBytes(_signed.hash),
            nonce=tx["nonce"],
            address=self.address,
            source=tx,
        )

    @staticmethod
    def from_private_key(key: str) -> "HotWallet":
        """Create a hot wallet from a private key that is passed in as a hex string.

        :param key: 0x prefixed hex string
        :return: Ready to go hot wallet account
        """
        assert type(key) == str, f"Expected private key as string, got {type(key)}"
        assert key.startswith("0x"), f"This system assumes private keys are prefixed with 0x, your key starts with {key[0:8]}... Please add 0x prefix to your private key hex string"
        account = Account.from_key(key)
        return HotWallet(account)
