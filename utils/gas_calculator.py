"""
Gas Calculator
Resolves gas limit and fee fields for outgoing transactions
"""

from typing import Dict
from web3 import Web3
from loguru import logger

from .config_loader import NetworkConfig


class GasCalculator:
    """
    Fee selection, in order of preference:
    - Fixed gasPrice from network config (legacy transaction)
    - EIP-1559 fields when the chain reports a base fee
    - Network gas price otherwise
    """

    def __init__(self, w3: Web3, network: NetworkConfig):
        """
        Initialize Gas Calculator

        Args:
            w3: Web3 instance
            network: Network configuration
        """
        self.w3 = w3
        self.network = network

    def get_fee_params(self) -> Dict[str, int]:
        """
        Get fee fields for a transaction

        Returns:
            Either {'gasPrice'} or {'maxFeePerGas', 'maxPriorityFeePerGas'} in wei
        """
        if self.network.gas_price != 'auto':
            logger.debug(f"Using configured gas price: {self.w3.from_wei(self.network.gas_price, 'gwei')} gwei")
            return {'gasPrice': int(self.network.gas_price)}

        latest_block = self.w3.eth.get_block('latest')
        base_fee_wei = latest_block.get('baseFeePerGas')

        if base_fee_wei is not None:
            priority_fee_wei = self.w3.eth.max_priority_fee

            # Max fee = base fee * 2 + priority fee (room for base fee growth)
            max_fee_wei = (base_fee_wei * 2) + priority_fee_wei

            return {
                'maxFeePerGas': int(max_fee_wei),
                'maxPriorityFeePerGas': int(priority_fee_wei)
            }

        return {'gasPrice': int(self.w3.eth.gas_price)}

    def get_gas_limit(self, estimated_gas: int) -> int:
        """
        Get gas limit for a transaction

        Args:
            estimated_gas: Node estimate for the transaction

        Returns:
            Configured fixed limit, or the estimate scaled by gasMultiplier
        """
        if self.network.gas != 'auto':
            return int(self.network.gas)

        return int(estimated_gas * self.network.gas_multiplier)

    @staticmethod
    def max_cost(tx: Dict) -> int:
        """Upper bound on what a transaction can charge the sender, in wei"""
        price = tx.get('maxFeePerGas', tx.get('gasPrice', 0))
        return tx['gas'] * price + tx.get('value', 0)
