"""
Blockchain Interaction Package
Handles contract artifacts, compilation, signing and deployment
"""

from .contract_factory import ContractFactory, ContractDeployment, DeploymentResult
from .signer_manager import SignerManager
from .transaction_builder import TransactionBuilder
from .explorer import ExplorerClient

__all__ = [
    'ContractFactory',
    'ContractDeployment',
    'DeploymentResult',
    'SignerManager',
    'TransactionBuilder',
    'ExplorerClient'
]
