"""
Config Loader
Reads the project configuration and resolves secrets from the environment
"""

import os
import json
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union
from loguru import logger
from dotenv import load_dotenv

load_dotenv()

DEFAULT_CONFIG_PATH = "config/network_config.json"

# In-process development chain, no RPC endpoint
DEV_NETWORK = "hardhat"


@dataclass
class NetworkConfig:
    """Resolved settings for a single network"""
    name: str
    url: Optional[str] = None
    chain_id: Optional[int] = None
    gas_price: Union[int, str] = "auto"
    gas: Union[int, str] = "auto"
    gas_multiplier: float = 1.0
    accounts: List[str] = field(default_factory=list)
    timeout: int = 120

    @property
    def is_dev_network(self) -> bool:
        return self.name == DEV_NETWORK


@dataclass
class ProjectConfig:
    """Whole-project settings"""
    default_network: str
    networks: Dict[str, Dict]
    solidity: Dict
    paths: Dict[str, str]
    explorer: Dict
    deployment: Dict
    root: str = "."

    def get_network(self, name: Optional[str] = None) -> NetworkConfig:
        """
        Resolve a network by name

        Args:
            name: Network name (None = default network)

        Returns:
            NetworkConfig with secrets loaded from the environment
        """
        network_name = name if name else self.default_network

        if network_name not in self.networks:
            available = ', '.join(sorted(self.networks))
            raise ValueError(f"Unknown network '{network_name}'. Available networks: {available}")

        return _resolve_network(network_name, self.networks[network_name])

    @property
    def artifacts_dir(self) -> str:
        return os.path.join(self.root, self.paths.get('artifacts', 'artifacts'))

    @property
    def sources_dir(self) -> str:
        return os.path.join(self.root, self.paths.get('sources', 'contracts'))

    @property
    def explorer_api_key(self) -> Optional[str]:
        env_name = self.explorer.get('api_key_env')
        return os.getenv(env_name) if env_name else self.explorer.get('api_key')


def load_config(path: Optional[str] = None) -> ProjectConfig:
    """
    Load project configuration from JSON

    Args:
        path: Config file path (None = NETWORK_CONFIG_PATH or the default)

    Returns:
        ProjectConfig instance
    """
    config_path = path or os.getenv('NETWORK_CONFIG_PATH') or DEFAULT_CONFIG_PATH

    with open(config_path, 'r') as f:
        raw = json.load(f)

    networks = raw.get('networks', {})
    networks.setdefault(DEV_NETWORK, {})

    config = ProjectConfig(
        default_network=raw.get('default_network', DEV_NETWORK),
        networks=networks,
        solidity=raw.get('solidity', {}),
        paths=raw.get('paths', {}),
        explorer=raw.get('explorer', {}),
        deployment=raw.get('deployment', {}),
        root=_project_root(config_path)
    )

    logger.debug(f"Loaded config from {config_path} ({len(networks)} networks)")
    return config


def normalize_private_key(key: str) -> str:
    """Accept keys with or without the 0x prefix"""
    key = key.strip()
    if not key.startswith('0x'):
        key = '0x' + key
    return key


def _require_env(var_name: str, network_name: str) -> str:
    value = os.getenv(var_name)
    if not value:
        raise ValueError(f"Environment variable {var_name} must be set for network '{network_name}'")
    return value


def _resolve_network(name: str, raw: Dict) -> NetworkConfig:
    """Build a NetworkConfig, pulling *_env entries from the environment"""
    url = raw.get('url')
    if raw.get('url_env'):
        url = _require_env(raw['url_env'], name)

    if url is None and name != DEV_NETWORK:
        raise ValueError(f"Network '{name}' has no url or url_env configured")

    accounts = [normalize_private_key(key) for key in raw.get('accounts', [])]
    for var_name in raw.get('accounts_env', []):
        accounts.append(normalize_private_key(_require_env(var_name, name)))

    gas_price = raw.get('gasPrice', 'auto')
    if gas_price != 'auto':
        gas_price = int(gas_price)

    gas = raw.get('gas', 'auto')
    if gas != 'auto':
        gas = int(gas)

    chain_id = raw.get('chainId')

    return NetworkConfig(
        name=name,
        url=url,
        chain_id=int(chain_id) if chain_id is not None else None,
        gas_price=gas_price,
        gas=gas,
        gas_multiplier=float(raw.get('gasMultiplier', 1.0)),
        accounts=accounts,
        timeout=int(raw.get('timeout', 120))
    )


def _project_root(config_path: str) -> str:
    """Directory holding config/, or the config file's own directory"""
    config_dir = os.path.dirname(os.path.abspath(config_path))
    if os.path.basename(config_dir) == 'config':
        return os.path.dirname(config_dir)
    return config_dir
