"""
Accounts Task
Prints the list of signer accounts for a network
"""

from typing import List, Optional

from blockchain.signer_manager import SignerManager
from utils.config_loader import ProjectConfig
from utils.rpc_manager import RPCManager


def list_accounts(config: ProjectConfig, network_name: Optional[str] = None) -> List[str]:
    network = config.get_network(network_name)
    w3 = RPCManager(network).connect()

    addresses = SignerManager(w3, network).get_addresses()
    for address in addresses:
        print(address)

    return addresses
