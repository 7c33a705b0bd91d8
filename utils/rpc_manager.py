"""
RPC Manager
Connects Web3 to a configured network and guards against the wrong chain
"""

from typing import Optional
from web3 import Web3, EthereumTesterProvider
from loguru import logger

from .config_loader import NetworkConfig


class RPCManager:
    """
    One Web3 connection per network name

    The development network runs in-process on eth-tester,
    every other network goes through its HTTP endpoint.
    """

    def __init__(self, network: NetworkConfig):
        """
        Initialize RPC Manager

        Args:
            network: Resolved network configuration
        """
        self.network = network
        self.w3: Optional[Web3] = None

    def connect(self) -> Web3:
        """
        Create the Web3 instance and verify the connection

        Returns:
            Connected Web3 instance
        """
        if self.w3 is not None:
            return self.w3

        w3 = Web3(self._create_provider())

        if not w3.is_connected():
            raise ConnectionError(f"Cannot connect to network '{self.network.name}' at {self.network.url}")

        self._check_chain_id(w3)

        self.w3 = w3
        logger.success(f"Connected to {self.network.name} (chain id {w3.eth.chain_id})")
        return w3

    def get_web3(self) -> Web3:
        """Get the connected Web3 instance, connecting on first use"""
        return self.connect()

    def _create_provider(self):
        if self.network.is_dev_network:
            logger.info("Starting in-process development chain")
            return EthereumTesterProvider()

        logger.info(f"Connecting to {self.network.name}: {self.network.url}")
        return Web3.HTTPProvider(
            self.network.url,
            request_kwargs={'timeout': self.network.timeout}
        )

    def _check_chain_id(self, w3: Web3):
        """Refuse to continue when the node reports a different chain"""
        if self.network.chain_id is None:
            return

        actual = w3.eth.chain_id
        if actual != self.network.chain_id:
            raise ValueError(
                f"Network '{self.network.name}' is configured with chain id "
                f"{self.network.chain_id} but the node reports {actual}"
            )

