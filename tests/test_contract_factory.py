"""
Unit Tests for Contract Factory, Signers and Artifacts
"""

import json
import pytest
from unittest.mock import Mock
from eth_account import Account
from hexbytes import HexBytes
from web3 import Web3

from blockchain.artifacts import find_artifact_path, load_artifact, link_bytecode
from blockchain.contract_factory import ContractFactory, coerce_argument, prepare_constructor_args, split_tuple_type
from blockchain.signer_manager import SignerManager
from utils.config_loader import NetworkConfig

TEST_KEY = '0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318'
OWNER = '0xB56CDe5115457715d326eA961E78d3aeD61be592'
TREASURY = '0x985d37a1410FdE7cD094Ed8560Bdd1c8337A2a7E'
TX_HASH = HexBytes(b'\x12' * 32)

# Constructor copies a single STOP opcode as runtime code
BYTECODE = '0x6001600c60003960016000f300'

ABI = [
    {
        'type': 'constructor',
        'stateMutability': 'nonpayable',
        'inputs': [
            {'name': 'owner', 'type': 'address', 'internalType': 'address'},
            {'name': 'treasury', 'type': 'address', 'internalType': 'address'}
        ]
    }
]


@pytest.fixture
def artifact():
    return {
        'contractName': 'Memeverse',
        'sourceName': 'contracts/Memeverse.sol',
        'abi': ABI,
        'bytecode': BYTECODE,
        'linkReferences': {}
    }


@pytest.fixture
def network():
    return NetworkConfig(
        name='bsc_testnet',
        url='http://127.0.0.1:8545',
        chain_id=97,
        gas_price=20_000_000_000,
        accounts=[TEST_KEY]
    )


@pytest.fixture
def w3():
    """Mock Web3 instance with a contract constructor"""
    mock = Mock()
    mock.from_wei = Web3.from_wei
    mock.eth.get_transaction_count.return_value = 0
    mock.eth.get_balance.return_value = 10 ** 18
    mock.eth.send_raw_transaction.return_value = TX_HASH

    constructor = Mock()
    constructor.estimate_gas.return_value = 100_000
    constructor.build_transaction.side_effect = lambda params: {**params, 'data': BYTECODE}
    mock.eth.contract.return_value.constructor.return_value = constructor

    return mock


@pytest.fixture
def artifacts_dir(tmp_path, artifact):
    """Artifacts tree with one contract"""
    directory = tmp_path / 'artifacts' / 'contracts' / 'Memeverse.sol'
    directory.mkdir(parents=True)
    (directory / 'Memeverse.json').write_text(json.dumps(artifact))
    (directory / 'Memeverse.dbg.json').write_text(json.dumps({'buildInfo': '../../build-info/x.json'}))
    return str(tmp_path / 'artifacts')


class TestArtifacts:
    """Test artifact lookup and linking"""

    def test_find_by_name(self, artifacts_dir):
        path = find_artifact_path(artifacts_dir, 'Memeverse')

        assert path.endswith('Memeverse.json')

    def test_find_fully_qualified(self, artifacts_dir):
        path = find_artifact_path(artifacts_dir, 'contracts/Memeverse.sol:Memeverse')

        assert load_artifact(artifacts_dir, 'contracts/Memeverse.sol:Memeverse')['contractName'] == 'Memeverse'
        assert path.endswith('Memeverse.json')

    def test_missing_artifact(self, artifacts_dir):
        with pytest.raises(ValueError, match='not found'):
            find_artifact_path(artifacts_dir, 'Doge')

    def test_ambiguous_artifact(self, artifacts_dir, artifact, tmp_path):
        """Test two contracts with the same name need qualification"""
        other = tmp_path / 'artifacts' / 'contracts' / 'legacy' / 'Memeverse.sol'
        other.mkdir(parents=True)
        (other / 'Memeverse.json').write_text(json.dumps(artifact))

        with pytest.raises(ValueError, match='Multiple artifacts'):
            find_artifact_path(artifacts_dir, 'Memeverse')

    def test_link_bytecode(self):
        """Test library placeholder replacement"""
        placeholder = '__$' + 'a' * 34 + '$__'
        bytecode = '0x6000' + placeholder + '6000'
        refs = {'contracts/Lib.sol': {'MathLib': [{'start': 2, 'length': 20}]}}

        linked = link_bytecode(bytecode, refs, {'MathLib': TREASURY})

        assert linked == '0x6000' + TREASURY[2:].lower() + '6000'

    def test_link_missing_library(self):
        refs = {'contracts/Lib.sol': {'MathLib': [{'start': 0, 'length': 20}]}}

        with pytest.raises(ValueError, match='Missing address'):
            link_bytecode('0x' + '00' * 20, refs)

    def test_link_unused_library(self):
        with pytest.raises(ValueError, match='not referenced'):
            link_bytecode(BYTECODE, {}, {'MathLib': TREASURY})


class TestCoerceArguments:
    """Test command-line argument coercion"""

    def test_address_checksummed(self):
        assert coerce_argument('address', OWNER.lower()) == OWNER

    def test_invalid_address(self):
        with pytest.raises(ValueError, match='Invalid address'):
            coerce_argument('address', '0x1234')

    def test_integers(self):
        assert coerce_argument('uint256', '1000') == 1000
        assert coerce_argument('int8', '-5') == -5
        assert coerce_argument('uint256', '0x10') == 16

    def test_bool(self):
        assert coerce_argument('bool', 'true') is True
        assert coerce_argument('bool', '0') is False

        with pytest.raises(ValueError):
            coerce_argument('bool', 'maybe')

    def test_arrays(self):
        assert coerce_argument('uint256[]', '[1, 2, 3]') == [1, 2, 3]
        assert coerce_argument('address[2]', json.dumps([OWNER.lower(), TREASURY.lower()])) == [OWNER, TREASURY]

    def test_strings_pass_through(self):
        assert coerce_argument('string', 'Memeverse') == 'Memeverse'

    def test_bytes_from_hex(self):
        """Test bytes values become raw bytes so eth_abi can encode them"""
        assert coerce_argument('bytes32', '0x' + '11' * 32) == b'\x11' * 32
        assert coerce_argument('bytes', '0xdeadbeef') == b'\xde\xad\xbe\xef'
        assert coerce_argument('bytes4[]', '["0x01020304"]') == [b'\x01\x02\x03\x04']

        with pytest.raises(ValueError, match='Invalid bytes32'):
            coerce_argument('bytes32', '0xzz')

    def test_tuple_fields_coerced(self):
        """Test each tuple field is coerced by its component type"""
        value = json.dumps([OWNER.lower(), '0x10', ['true', TREASURY.lower()]])

        coerced = coerce_argument('(address,uint256,(bool,address))', value)

        assert coerced == (OWNER, 16, (True, TREASURY))

    def test_tuple_array(self):
        value = json.dumps([[OWNER.lower(), 1], [TREASURY.lower(), 2]])

        assert coerce_argument('(address,uint96)[]', value) == [(OWNER, 1), (TREASURY, 2)]

    def test_tuple_wrong_field_count(self):
        with pytest.raises(ValueError, match='2 fields'):
            coerce_argument('(address,uint256)', json.dumps([OWNER]))

    def test_split_tuple_type(self):
        assert split_tuple_type('(address,(uint8,bool)[],bytes32)') == ['address', '(uint8,bool)[]', 'bytes32']
        assert split_tuple_type('()') == []

    def test_tuple_constructor_input(self):
        abi = [{
            'type': 'constructor',
            'inputs': [{
                'name': 'config',
                'type': 'tuple',
                'components': [
                    {'name': 'owner', 'type': 'address'},
                    {'name': 'cap', 'type': 'uint256'}
                ]
            }]
        }]

        assert prepare_constructor_args(abi, [json.dumps([OWNER.lower(), '1000'])], 'Vault') == [(OWNER, 1000)]

    def test_arity_mismatch(self):
        with pytest.raises(ValueError, match='expects 2 constructor arguments, got 3'):
            prepare_constructor_args(ABI, [OWNER, TREASURY, '1000'], 'Memeverse')


class TestSignerManager:
    """Test signer resolution"""

    def test_local_keys(self, w3, network):
        signers = SignerManager(w3, network)

        assert signers.uses_local_keys
        assert signers.get_deployer() == Account.from_key(TEST_KEY).address

    def test_node_accounts(self, w3):
        w3.eth.accounts = [OWNER.lower()]
        signers = SignerManager(w3, NetworkConfig(name='hardhat'))

        assert not signers.uses_local_keys
        assert signers.get_addresses() == [OWNER]

    def test_no_signers(self, w3):
        w3.eth.accounts = []
        signers = SignerManager(w3, NetworkConfig(name='hardhat'))

        with pytest.raises(ValueError, match='No signer accounts'):
            signers.get_deployer()

    def test_sign_unknown_sender(self, w3, network):
        signers = SignerManager(w3, network)

        with pytest.raises(ValueError, match='No private key'):
            signers.sign_transaction({'from': OWNER, 'nonce': 0})


class TestContractFactory:
    """Test deployment through the factory"""

    def test_empty_bytecode(self, w3, network, artifact):
        artifact['bytecode'] = '0x'

        with pytest.raises(ValueError, match='no bytecode'):
            ContractFactory(w3, artifact, SignerManager(w3, network))

    def test_arity_checked_before_sending(self, w3, network, artifact):
        factory = ContractFactory(w3, artifact, SignerManager(w3, network))

        with pytest.raises(ValueError, match='expects 2 constructor arguments, got 1'):
            factory.deploy(OWNER)

        w3.eth.send_raw_transaction.assert_not_called()

    def test_deploy_with_local_key(self, w3, network, artifact):
        """Test signed creation transaction is sent"""
        factory = ContractFactory(w3, artifact, SignerManager(w3, network))

        deployment = factory.deploy(OWNER.lower(), TREASURY)

        assert deployment.tx_hash == TX_HASH
        w3.eth.contract.return_value.constructor.assert_called_once_with(OWNER, TREASURY)

        tx_params = w3.eth.contract.return_value.constructor.return_value.build_transaction.call_args[0][0]
        assert tx_params['chainId'] == 97
        assert tx_params['gasPrice'] == 20_000_000_000
        assert tx_params['gas'] == 100_000
        assert tx_params['from'] == Account.from_key(TEST_KEY).address
        w3.eth.get_transaction_count.assert_called_once_with(tx_params['from'], 'pending')
        w3.eth.send_raw_transaction.assert_called_once()

    def test_insufficient_funds(self, w3, network, artifact):
        """Test balance check stops the deployment"""
        w3.eth.get_balance.return_value = 0
        factory = ContractFactory(w3, artifact, SignerManager(w3, network))

        with pytest.raises(ValueError, match='Insufficient funds'):
            factory.deploy(OWNER, TREASURY)

        w3.eth.send_raw_transaction.assert_not_called()

    def test_deploy_with_node_account(self, w3, artifact):
        """Test unlocked node accounts use transact"""
        w3.eth.accounts = [OWNER]
        constructor = w3.eth.contract.return_value.constructor.return_value
        constructor.transact.return_value = TX_HASH
        factory = ContractFactory(w3, artifact, SignerManager(w3, NetworkConfig(name='hardhat')))

        deployment = factory.deploy(OWNER, TREASURY)

        assert deployment.tx_hash == TX_HASH
        constructor.transact.assert_called_once_with({'from': OWNER, 'value': 0})

    @pytest.mark.asyncio
    async def test_deployed(self, w3, network, artifact):
        """Test waiting for the receipt"""
        w3.eth.wait_for_transaction_receipt.return_value = {
            'status': 1,
            'contractAddress': TREASURY.lower(),
            'gasUsed': 54_321,
            'blockNumber': 7
        }
        factory = ContractFactory(w3, artifact, SignerManager(w3, network))

        result = await factory.deploy(OWNER, TREASURY).deployed()

        assert result.address == TREASURY
        assert result.contract_name == 'Memeverse'
        assert result.gas_used == 54_321
        assert result.block_number == 7
        assert result.network == 'bsc_testnet'
        assert result.transaction_hash == '0x' + '12' * 32

    @pytest.mark.asyncio
    async def test_reverted_deployment(self, w3, network, artifact):
        """Test a failed receipt raises"""
        w3.eth.wait_for_transaction_receipt.return_value = {
            'status': 0,
            'contractAddress': None,
            'gasUsed': 100_000,
            'blockNumber': 7
        }
        factory = ContractFactory(w3, artifact, SignerManager(w3, network))

        with pytest.raises(RuntimeError, match='reverted'):
            await factory.deploy(OWNER, TREASURY).deployed()


if __name__ == "__main__":
    pytest.main([__file__, '-v'])
