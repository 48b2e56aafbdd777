"""ABI encoding and compiler artifact helpers.

We do not need full contract ABIs: deployments use raw creation bytecode
and calls are encoded from their Solidity signature.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Sequence

import eth_abi
from hexbytes import HexBytes
from web3 import Web3


def get_function_selector(function_signature: str) -> HexBytes:
    """Four byte selector of a Solidity function signature."""
    return HexBytes(Web3.keccak(text=function_signature)[0:4])


def get_signature_arg_types(function_signature: str) -> list[str]:
    """``setDataBatch(bytes32[],bytes[])`` -> ``["bytes32[]", "bytes[]"]``"""
    selector_text = function_signature[function_signature.find("(") + 1 : function_signature.rfind(")")]
    return [t.strip() for t in selector_text.split(",") if t.strip()]


def encode_with_signature(function_signature: str, args: Sequence) -> HexBytes:
    """Mimic Solidity's abi.encodeWithSignature() in Python.

    Example:

    .. code-block:: python

            payload = encode_with_signature("initialize(address)", [my_address])

    :param function_signature:
        Solidity function signature that can be hashed to a selector.

        ABI fill be extractd from this signature.

    :param args:
        Argument values to be encoded.
    """

    assert type(args) in (tuple, list), f"Expected args as list, got {type(args)}"

    arg_types = get_signature_arg_types(function_signature)
    assert len(arg_types) == len(args), f"{function_signature} takes {len(arg_types)} arguments, got {len(args)}"
    encoded_args = eth_abi.encode(arg_types, list(args))
    return HexBytes(get_function_selector(function_signature) + encoded_args)


def encode_constructor_args(arg_types: Sequence[str], args: Sequence) -> HexBytes:
    """ABI encode constructor arguments to be appended to creation bytecode."""
    assert len(arg_types) == len(args), f"Constructor takes {len(arg_types)} arguments, got {len(args)}"
    if not arg_types:
        return HexBytes(b"")
    return HexBytes(eth_abi.encode(list(arg_types), list(args)))


@lru_cache(maxsize=32)
def load_artifact_bytecode(fname: str | Path) -> HexBytes:
    """Read creation bytecode from a compiler artifact JSON file.

    - Hardhat and solc artifacts carry the bytecode as a hex string

    - Foundry artifacts carry a dict with the ``object`` key

    Any results are cached.

    :param fname:
        Path to the artifact file

    :return:
        Creation bytecode
    """
    with open(fname, "rt", encoding="utf-8") as f:
        contract_interface = json.load(f)

    bytecode = contract_interface.get("bytecode")

    if type(bytecode) == dict:
        # Sol 0.8 / Forge?
        # Contains keys object, sourceMap, linkReferences
        bytecode = bytecode["object"]

    assert bytecode, f"No bytecode in {fname}"
    return HexBytes(bytecode)
