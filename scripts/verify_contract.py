"""
Contract Verification Script
Publishes a deployed contract's source on the block explorer
"""

from typing import List, Optional
from web3 import Web3
from loguru import logger

from blockchain.artifacts import load_artifact
from blockchain.compiler import find_build_info
from blockchain.contract_factory import constructor_types, prepare_constructor_args
from blockchain.explorer import ExplorerClient
from utils.config_loader import ProjectConfig
from utils.rpc_manager import RPCManager


async def verify_contract(
    config: ProjectConfig,
    network_name: Optional[str],
    address: str,
    contract_name: str,
    constructor_args: List[str]
) -> str:
    """
    Verify a deployed contract

    Args:
        config: Project configuration
        network_name: Network the contract is deployed on
        address: Contract address
        contract_name: Bare or fully qualified contract name
        constructor_args: Arguments the contract was deployed with

    Returns:
        Explorer result message
    """
    network = config.get_network(network_name)

    if network.is_dev_network:
        raise ValueError("Contracts on the in-process development chain cannot be verified")

    chain_id = network.chain_id
    if chain_id is None:
        chain_id = RPCManager(network).connect().eth.chain_id

    artifact = load_artifact(config.artifacts_dir, contract_name)
    source_name = artifact['sourceName']
    build_info = find_build_info(config.artifacts_dir, source_name)

    values = prepare_constructor_args(artifact['abi'], constructor_args, artifact['contractName'])
    types = constructor_types(artifact['abi'])

    explorer = config.explorer
    client = ExplorerClient(
        config.explorer_api_key,
        chain_id,
        api_url=explorer.get('api_url'),
        poll_interval=explorer.get('poll_interval_seconds', 5),
        max_status_checks=explorer.get('max_status_checks', 20)
    )

    logger.info(f"Verifying {artifact['contractName']} on {network.name} (chain id {chain_id})")
    return await client.verify_contract(
        Web3.to_checksum_address(address),
        f"{source_name}:{artifact['contractName']}",
        build_info,
        ExplorerClient.encode_constructor_args(types, values)
    )
