"""Universal receiver delegate pipeline."""

import pytest

from lsp_factory.constants import ContractRole, ZERO_ADDRESS
from lsp_factory.events import DeploymentType
from lsp_factory.universal_receiver import universal_receiver_delegate_deployment

PROVIDED = "0x00000000000000000000000000000000000000e5"
CUSTOM_BYTECODE = "0x60806040"


@pytest.mark.asyncio
async def test_deploy_when_nothing_to_reuse(chain, config):
    """No default delegate on chain: deploy the bytecode."""
    stream = universal_receiver_delegate_deployment(chain, chain, config=config)
    events = await stream.collect()

    assert len(events) == 2
    assert events[0].type == DeploymentType.contract

    # Null address is checked first
    assert chain.calls[0] == ("get_code", None, {"address": ZERO_ADDRESS})
    assert chain.get_calls("deploy_standalone", ContractRole.universal_receiver)[0][2]["args"] == []
    assert await stream.resolve_address() == events[1].address


@pytest.mark.asyncio
async def test_reuse_default_address(chain, default_universal_receiver, config):
    """Code at the default address is reused."""
    chain.code[default_universal_receiver] = b"\x60\x80"
    stream = universal_receiver_delegate_deployment(chain, chain, default_address=default_universal_receiver, config=config)

    assert await stream.collect() == []
    assert chain.count_submissions() == {}
    assert await stream.resolve_address() == default_universal_receiver


@pytest.mark.asyncio
async def test_deploy_when_default_address_empty(chain, default_universal_receiver, config):
    stream = universal_receiver_delegate_deployment(chain, chain, default_address=default_universal_receiver, config=config)
    events = await stream.collect()
    assert len(events) == 2
    assert chain.calls[0] == ("get_code", None, {"address": default_universal_receiver})


@pytest.mark.asyncio
async def test_reuse_provided_address(chain, config):
    """Provided delegate is used as is, the code is still read."""
    stream = universal_receiver_delegate_deployment(chain, chain, provided_address=PROVIDED, config=config)

    assert await stream.collect() == []
    assert chain.count_submissions() == {}
    assert len(chain.get_calls("get_code")) == 1
    assert await stream.resolve_address() == PROVIDED


@pytest.mark.asyncio
async def test_base_contract_overrides_reuse(chain, base_contract_addresses, default_universal_receiver, config):
    """A base contract takes priority over both provided and default addresses."""
    chain.code[default_universal_receiver] = b"\x60\x80"
    stream = universal_receiver_delegate_deployment(
        chain,
        chain,
        base_contract_addresses,
        provided_address=PROVIDED,
        default_address=default_universal_receiver,
        config=config,
    )
    events = await stream.collect()

    assert len(events) == 4
    assert all(e.type == DeploymentType.proxy for e in events)

    init_call = chain.get_calls("transact", ContractRole.universal_receiver)[0]
    assert init_call[2]["function"] == "initialize()"
    assert init_call[2]["args"] == []
    assert await stream.resolve_address() == events[1].address


@pytest.mark.asyncio
async def test_bytecode_overrides_reuse(chain, config):
    stream = universal_receiver_delegate_deployment(chain, chain, provided_address=PROVIDED, bytecode=CUSTOM_BYTECODE, config=config)
    events = await stream.collect()

    assert len(events) == 2
    assert chain.get_calls("deploy_standalone", ContractRole.universal_receiver)[0][2]["bytecode"] == bytes.fromhex(CUSTOM_BYTECODE[2:])
    assert await stream.resolve_address() == events[1].address
