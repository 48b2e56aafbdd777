"""Deployment path selection and submission."""

import pytest
from hexbytes import HexBytes

from lsp_factory.constants import ContractRole
from lsp_factory.errors import DeploymentStage, DeploymentSubmissionFailed
from lsp_factory.events import DeploymentStatus, DeploymentType
from lsp_factory.interfaces import ChainProvider, ContractFactory
from lsp_factory.strategy import DeploymentPath, select_deployment_path, submit_deployment

CUSTOM_BYTECODE = "0x6080604052"


def test_select_deployment_path():
    """Base contract wins over bytecode, bytecode wins over the default."""
    base = "0x00000000000000000000000000000000000000a1"
    assert select_deployment_path(base, CUSTOM_BYTECODE) == DeploymentPath.proxy
    assert select_deployment_path(base, None) == DeploymentPath.proxy
    assert select_deployment_path(None, CUSTOM_BYTECODE) == DeploymentPath.custom_bytecode
    assert select_deployment_path(None, None) == DeploymentPath.default_bytecode
    assert select_deployment_path("", b"") == DeploymentPath.default_bytecode


@pytest.mark.asyncio
async def test_submit_proxy(chain, config, signer_address, base_contract_addresses):
    """Proxy deployment attaches to the base and ignores constructor arguments."""
    event = await submit_deployment(
        chain,
        ContractRole.account,
        [signer_address],
        base_contract_address=base_contract_addresses.account,
        bytecode=CUSTOM_BYTECODE,
        config=config,
    )

    assert event.type == DeploymentType.proxy
    assert event.status == DeploymentStatus.pending
    assert event.contract_name == ContractRole.account
    assert event.transaction_hash is not None
    assert event.address is None

    assert [c[0] for c in chain.calls] == ["attach", "deploy_proxy"]
    proxy_call = chain.get_calls("deploy_proxy")[0]
    assert proxy_call[2]["base_address"] == base_contract_addresses.account
    assert proxy_call[2]["gas"] == config.proxy_gas_limit
    assert chain.get_calls("deploy_standalone") == []


@pytest.mark.asyncio
async def test_submit_custom_bytecode(chain, config, signer_address):
    """Custom bytecode is deployed with the constructor arguments."""
    event = await submit_deployment(chain, ContractRole.account, [signer_address], bytecode=CUSTOM_BYTECODE, config=config)

    assert event.type == DeploymentType.contract
    assert chain.get_calls("attach") == []
    call = chain.get_calls("deploy_standalone")[0]
    assert call[2]["bytecode"] == HexBytes(CUSTOM_BYTECODE)
    assert call[2]["args"] == [signer_address]
    assert call[2]["gas"] == config.gas_limit


@pytest.mark.asyncio
async def test_submit_default_bytecode(chain, config):
    event = await submit_deployment(chain, ContractRole.universal_receiver, [], config=config)

    assert event.type == DeploymentType.contract
    call = chain.get_calls("deploy_standalone")[0]
    assert call[2]["bytecode"] is None
    assert call[2]["args"] == []


@pytest.mark.asyncio
async def test_submit_failure_tagged_with_role(chain, config, signer_address):
    """Node rejection is reported with the contract that failed."""
    chain.fail_submission.add(ContractRole.key_manager)

    with pytest.raises(DeploymentSubmissionFailed) as exc_info:
        await submit_deployment(chain, ContractRole.key_manager, [signer_address], config=config)

    e = exc_info.value
    assert e.role == ContractRole.key_manager
    assert e.stage == DeploymentStage.deployment
    assert "Insufficient funds" in str(e)
    assert isinstance(e.__cause__, Exception)


def test_fake_chain_implements_capabilities(chain):
    assert isinstance(chain, ContractFactory)
    assert isinstance(chain, ChainProvider)
