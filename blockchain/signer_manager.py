"""
Signer Manager
Accounts allowed to send transactions on the selected network
"""

from decimal import Decimal
from typing import Dict, List, Optional
from web3 import Web3
from eth_account import Account
from eth_account.signers.local import LocalAccount
from loguru import logger

from utils.config_loader import NetworkConfig


class SignerManager:
    """
    Two kinds of signers:
    - Local: private keys from network config, transactions signed here
    - Node-managed: unlocked accounts reported by the node (dev chain)
    """

    def __init__(self, w3: Web3, network: NetworkConfig):
        """
        Initialize signer manager

        Args:
            w3: Web3 instance
            network: Network configuration holding the private keys
        """
        self.w3 = w3
        self.network = network

        self.local_accounts: List[LocalAccount] = [
            Account.from_key(key) for key in network.accounts
        ]

        if self.local_accounts:
            logger.debug(f"{len(self.local_accounts)} local signer(s) configured for {network.name}")

    @property
    def uses_local_keys(self) -> bool:
        return bool(self.local_accounts)

    def get_addresses(self) -> List[str]:
        """
        Get signer addresses

        Returns:
            Local account addresses, or node accounts when no keys are configured
        """
        if self.local_accounts:
            return [account.address for account in self.local_accounts]

        return [Web3.to_checksum_address(address) for address in self.w3.eth.accounts]

    def get_deployer(self) -> str:
        """First signer, used for deployments"""
        addresses = self.get_addresses()

        if not addresses:
            raise ValueError(f"No signer accounts available on network '{self.network.name}'")

        return addresses[0]

    def get_local_account(self, address: str) -> Optional[LocalAccount]:
        for account in self.local_accounts:
            if account.address == Web3.to_checksum_address(address):
                return account
        return None

    def sign_transaction(self, transaction: Dict):
        """
        Sign a transaction with the matching local key

        Args:
            transaction: Transaction dict with a 'from' field

        Returns:
            Signed transaction
        """
        account = self.get_local_account(transaction['from'])

        if account is None:
            raise ValueError(f"No private key configured for {transaction['from']}")

        return account.sign_transaction(transaction)

    def get_balance(self, address: str) -> int:
        """Native balance in wei"""
        return self.w3.eth.get_balance(Web3.to_checksum_address(address))

    def get_balance_ether(self, address: str) -> Decimal:
        return Decimal(str(self.w3.from_wei(self.get_balance(address), 'ether')))
