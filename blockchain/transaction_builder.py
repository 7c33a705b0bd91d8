"""
Transaction Builder
Constructs contract-creation transactions for locally held keys
"""

from typing import Dict, Optional
from web3 import Web3
from loguru import logger

from utils.config_loader import NetworkConfig
from utils.gas_calculator import GasCalculator


class TransactionBuilder:
    """
    Fills nonce, chain id, gas and fees for a deployment
    """

    def __init__(self, w3: Web3, network: NetworkConfig, gas_calculator: Optional[GasCalculator] = None):
        """
        Initialize Transaction Builder

        Args:
            w3: Web3 instance
            network: Network configuration
            gas_calculator: Fee/gas resolver (created from network if omitted)
        """
        self.w3 = w3
        self.network = network
        self.gas_calculator = gas_calculator or GasCalculator(w3, network)

    def build_deploy_tx(self, constructor, sender: str, value: int = 0) -> Dict:
        """
        Build transaction for a contract deployment

        Args:
            constructor: web3 ContractConstructor bound to the constructor args
            sender: Deployer address
            value: Wei sent to a payable constructor

        Returns:
            Transaction dict ready for signing
        """
        sender = Web3.to_checksum_address(sender)

        fee_params = self.gas_calculator.get_fee_params()

        estimated_gas = None
        if self.network.gas == 'auto':
            estimated_gas = constructor.estimate_gas({'from': sender, 'value': value})
        gas_limit = self.gas_calculator.get_gas_limit(estimated_gas or 0)

        tx_params = {
            'from': sender,
            'nonce': self.w3.eth.get_transaction_count(sender, 'pending'),
            'gas': gas_limit,
            'value': value,
            'chainId': self.network.chain_id or self.w3.eth.chain_id,
            **fee_params
        }

        transaction = constructor.build_transaction(tx_params)

        logger.info(f"Gas limit: {gas_limit}")
        if 'gasPrice' in fee_params:
            logger.info(f"Gas price: {self.w3.from_wei(fee_params['gasPrice'], 'gwei')} gwei")
        else:
            logger.info(f"Max fee: {self.w3.from_wei(fee_params['maxFeePerGas'], 'gwei')} gwei")

        return transaction

    def check_funds(self, transaction: Dict, balance: int):
        """
        Fail before sending when the sender cannot cover the worst-case cost

        Args:
            transaction: Built transaction
            balance: Sender balance in wei
        """
        max_cost = GasCalculator.max_cost(transaction)
        logger.info(f"Maximum deployment cost: {self.w3.from_wei(max_cost, 'ether')} (balance {self.w3.from_wei(balance, 'ether')})")

        if balance < max_cost:
            raise ValueError(
                f"Insufficient funds for {transaction['from']}: "
                f"balance {balance} wei, transaction needs up to {max_cost} wei"
            )
