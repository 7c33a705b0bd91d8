"""
Contract Factory
Resolves a named contract and deploys it with constructor arguments
"""

import re
import json
import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from web3 import Web3
from loguru import logger

from .artifacts import load_artifact, link_bytecode
from .signer_manager import SignerManager
from .transaction_builder import TransactionBuilder

_ARRAY_TYPE = re.compile(r'^(.*)\[(\d*)\]$')


@dataclass
class DeploymentResult:
    """Outcome of a confirmed deployment"""
    contract_name: str
    address: str
    transaction_hash: str
    block_number: int
    gas_used: int
    network: str


def coerce_argument(abi_type: str, value: Any) -> Any:
    """
    Convert a command-line string into the value web3 expects for an ABI type

    Args:
        abi_type: Canonical ABI type, e.g. "address", "uint256", "bool[]"
        value: Raw value (strings and JSON lists are parsed per element type)

    Returns:
        Coerced value
    """
    array_match = _ARRAY_TYPE.match(abi_type)
    if array_match:
        items = json.loads(value) if isinstance(value, str) else value
        if not isinstance(items, list):
            raise ValueError(f"Expected a JSON list for {abi_type}, got {value!r}")
        return [coerce_argument(array_match.group(1), item) for item in items]

    if abi_type.startswith('('):
        items = json.loads(value) if isinstance(value, str) else value
        components = split_tuple_type(abi_type)
        if not isinstance(items, (list, tuple)) or len(items) != len(components):
            raise ValueError(f"Expected a JSON list of {len(components)} fields for {abi_type}, got {value!r}")
        return tuple(coerce_argument(component, item) for component, item in zip(components, items))

    if abi_type == 'address':
        if not Web3.is_address(value):
            raise ValueError(f"Invalid address argument: {value!r}")
        return Web3.to_checksum_address(value)

    if abi_type.startswith('bytes'):
        if isinstance(value, str):
            try:
                return Web3.to_bytes(hexstr=value)
            except ValueError as e:
                raise ValueError(f"Invalid {abi_type} argument: {value!r}") from e
        return bytes(value)

    if abi_type.startswith(('uint', 'int')):
        if isinstance(value, str):
            return int(value, 0)
        return int(value)

    if abi_type == 'bool':
        if isinstance(value, str):
            lowered = value.lower()
            if lowered not in ('true', 'false', '1', '0'):
                raise ValueError(f"Invalid bool argument: {value!r}")
            return lowered in ('true', '1')
        return bool(value)

    return value


class ContractDeployment:
    """
    A submitted, not yet confirmed, creation transaction
    """

    def __init__(self, factory: 'ContractFactory', tx_hash: bytes):
        self.factory = factory
        self.tx_hash = tx_hash
        self.contract = None
        self.receipt = None

    @property
    def w3(self) -> Web3:
        return self.factory.w3

    async def deployed(self, timeout: Optional[int] = None, poll_latency: float = 0.5) -> DeploymentResult:
        """
        Wait until the chain includes the creation transaction

        Args:
            timeout: Seconds to wait (None = network timeout)
            poll_latency: Seconds between receipt polls

        Returns:
            DeploymentResult for the new contract
        """
        timeout = timeout or self.factory.network_timeout

        logger.info("Waiting for confirmation...")
        receipt = await asyncio.to_thread(
            self.w3.eth.wait_for_transaction_receipt,
            self.tx_hash,
            timeout,
            poll_latency
        )
        self.receipt = receipt

        if receipt['status'] != 1:
            raise RuntimeError(f"Deployment transaction {Web3.to_hex(self.tx_hash)} reverted")

        address = Web3.to_checksum_address(receipt['contractAddress'])
        self.contract = self.w3.eth.contract(address=address, abi=self.factory.abi)

        logger.success(f"Gas used: {receipt['gasUsed']}")

        return DeploymentResult(
            contract_name=self.factory.contract_name,
            address=address,
            transaction_hash=Web3.to_hex(self.tx_hash),
            block_number=receipt['blockNumber'],
            gas_used=receipt['gasUsed'],
            network=self.factory.network_name
        )


class ContractFactory:
    """
    ABI and linked bytecode for one contract, bound to a network and signer
    """

    def __init__(
        self,
        w3: Web3,
        artifact: Dict,
        signer_manager: SignerManager,
        transaction_builder: Optional[TransactionBuilder] = None,
        libraries: Optional[Dict[str, str]] = None
    ):
        """
        Initialize Contract Factory

        Args:
            w3: Web3 instance
            artifact: Compiled artifact (abi, bytecode, linkReferences)
            signer_manager: Signers for the network
            transaction_builder: Builder for locally signed transactions
            libraries: Library name -> deployed address, for linking
        """
        self.w3 = w3
        self.artifact = artifact
        self.contract_name = artifact.get('contractName', 'Contract')
        self.abi = artifact['abi']
        self.signer_manager = signer_manager
        self.transaction_builder = transaction_builder or TransactionBuilder(w3, signer_manager.network)

        if artifact['bytecode'] in ('', '0x'):
            raise ValueError(
                f"{self.contract_name} has no bytecode; interfaces and abstract contracts cannot be deployed"
            )

        self.bytecode = link_bytecode(
            artifact['bytecode'],
            artifact.get('linkReferences', {}),
            libraries
        )

    @classmethod
    def from_artifacts(
        cls,
        artifacts_dir: str,
        contract_name: str,
        w3: Web3,
        signer_manager: SignerManager,
        libraries: Optional[Dict[str, str]] = None
    ) -> 'ContractFactory':
        """Build a factory from the artifact matching contract_name"""
        artifact = load_artifact(artifacts_dir, contract_name)
        return cls(w3, artifact, signer_manager, libraries=libraries)

    @property
    def network_name(self) -> str:
        return self.signer_manager.network.name

    @property
    def network_timeout(self) -> int:
        return self.signer_manager.network.timeout

    def prepare_arguments(self, args: List[Any]) -> List[Any]:
        """Check arity and coerce constructor arguments"""
        return prepare_constructor_args(self.abi, args, self.contract_name)

    def deploy(self, *args, value: int = 0) -> ContractDeployment:
        """
        Submit the creation transaction

        Args:
            *args: Constructor arguments
            value: Wei sent with the deployment

        Returns:
            ContractDeployment to await
        """
        prepared = self.prepare_arguments(list(args))
        contract = self.w3.eth.contract(abi=self.abi, bytecode=self.bytecode)
        constructor = contract.constructor(*prepared)
        deployer = self.signer_manager.get_deployer()

        logger.info(f"Deploying {self.contract_name} from {deployer}")

        if self.signer_manager.uses_local_keys:
            transaction = self.transaction_builder.build_deploy_tx(constructor, deployer, value)
            self.transaction_builder.check_funds(transaction, self.signer_manager.get_balance(deployer))

            signed_tx = self.signer_manager.sign_transaction(transaction)
            tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        else:
            # Node-managed account, the node fills nonce and fees
            tx_params = {'from': deployer, 'value': value}
            network = self.signer_manager.network
            if network.gas_price != 'auto':
                tx_params['gasPrice'] = int(network.gas_price)
            if network.gas != 'auto':
                tx_params['gas'] = int(network.gas)
            tx_hash = constructor.transact(tx_params)

        logger.info(f"Transaction sent: {Web3.to_hex(tx_hash)}")
        return ContractDeployment(self, tx_hash)


def canonical_type(abi_input: Dict) -> str:
    """Expand tuple components so eth_abi can encode them"""
    abi_type = abi_input['type']

    if abi_type.startswith('tuple'):
        inner = ','.join(canonical_type(component) for component in abi_input.get('components', []))
        return f"({inner}){abi_type[len('tuple'):]}"

    return abi_type


def split_tuple_type(abi_type: str) -> List[str]:
    """Split "(address,(uint8,bool)[])" into its top-level component types"""
    inner = abi_type[1:-1]
    components = []
    depth = 0
    start = 0

    for i, char in enumerate(inner):
        if char == '(':
            depth += 1
        elif char == ')':
            depth -= 1
        elif char == ',' and depth == 0:
            components.append(inner[start:i])
            start = i + 1

    if inner:
        components.append(inner[start:])
    return components


def constructor_types(abi: List[Dict]) -> List[str]:
    for entry in abi:
        if entry.get('type') == 'constructor':
            return [canonical_type(item) for item in entry.get('inputs', [])]
    return []


def prepare_constructor_args(abi: List[Dict], args: List[Any], contract_name: str) -> List[Any]:
    """
    Check arity and coerce constructor arguments

    Args:
        abi: Contract ABI
        args: Raw constructor arguments
        contract_name: Name used in error messages

    Returns:
        Arguments converted to their ABI types
    """
    types = constructor_types(abi)

    if len(args) != len(types):
        raise ValueError(
            f"{contract_name} expects {len(types)} constructor arguments, got {len(args)}"
        )

    return [coerce_argument(abi_type, value) for abi_type, value in zip(types, args)]
