"""
Utilities Package
Configuration, RPC connections and gas pricing
"""

from .config_loader import NetworkConfig, ProjectConfig, load_config
from .gas_calculator import GasCalculator
from .rpc_manager import RPCManager

__all__ = [
    'NetworkConfig',
    'ProjectConfig',
    'load_config',
    'GasCalculator',
    'RPCManager'
]
