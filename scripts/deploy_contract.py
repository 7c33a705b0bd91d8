"""
Smart Contract Deployment Script
Deploys a named contract to the selected network
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
from loguru import logger

from blockchain.contract_factory import ContractFactory, DeploymentResult
from blockchain.signer_manager import SignerManager
from utils.config_loader import ProjectConfig
from utils.rpc_manager import RPCManager


@dataclass
class DeploymentDescriptor:
    """What to deploy, and where"""
    network: Optional[str]
    contract_name: str
    constructor_args: List[str] = field(default_factory=list)
    libraries: Dict[str, str] = field(default_factory=dict)


async def deploy_contract(config: ProjectConfig, descriptor: DeploymentDescriptor) -> DeploymentResult:
    """
    Deploy a contract and wait for confirmation

    Args:
        config: Project configuration
        descriptor: Network, contract name and constructor arguments

    Returns:
        DeploymentResult of the confirmed deployment
    """
    network = config.get_network(descriptor.network)
    logger.info(f"Starting deployment of {descriptor.contract_name} to {network.name}...")

    w3 = RPCManager(network).connect()
    signer_manager = SignerManager(w3, network)

    factory = ContractFactory.from_artifacts(
        config.artifacts_dir,
        descriptor.contract_name,
        w3,
        signer_manager,
        libraries=descriptor.libraries
    )

    deployer = signer_manager.get_deployer()
    logger.info(f"Deploying from: {deployer}")
    logger.info(f"Account balance: {signer_manager.get_balance_ether(deployer)}")

    deployment = factory.deploy(*descriptor.constructor_args)
    result = await deployment.deployed()

    logger.success(f"Contract deployed successfully at {result.address}")
    logger.success(f"Transaction hash: {result.transaction_hash}")
    print(f"{result.contract_name} deployed to: {result.address}")

    return result
