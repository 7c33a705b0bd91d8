"""
Unit Tests for Solidity Compilation
"""

import json
import pytest
from unittest.mock import patch

from blockchain.artifacts import load_artifact
from blockchain.compiler import SolidityCompiler, find_build_info
from utils.config_loader import load_config

SOURCE = """
// SPDX-License-Identifier: MIT
pragma solidity ^0.8.0;

contract Memeverse {
    address public owner;
    address public treasury;

    constructor(address _owner, address _treasury) {
        owner = _owner;
        treasury = _treasury;
    }
}
"""

ABI = [{'type': 'constructor', 'inputs': [{'name': '_owner', 'type': 'address'}, {'name': '_treasury', 'type': 'address'}]}]


def solc_output():
    """Minimal solc standard JSON output"""
    return {
        'errors': [{'severity': 'warning', 'message': 'unused', 'formattedMessage': 'Warning: unused'}],
        'contracts': {
            'contracts/Memeverse.sol': {
                'Memeverse': {
                    'abi': ABI,
                    'evm': {
                        'bytecode': {'object': '6080', 'linkReferences': {}},
                        'deployedBytecode': {'object': '6081', 'linkReferences': {}}
                    }
                }
            }
        }
    }


@pytest.fixture
def project(tmp_path):
    """Project with one Solidity source"""
    config_dir = tmp_path / 'config'
    config_dir.mkdir()
    config_path = config_dir / 'network_config.json'
    config_path.write_text(json.dumps({
        'solidity': {'version': '0.8.0', 'optimizer': {'enabled': True, 'runs': 200}},
        'paths': {'sources': 'contracts', 'artifacts': 'src/artifacts'},
        'networks': {}
    }))

    sources = tmp_path / 'contracts'
    sources.mkdir()
    (sources / 'Memeverse.sol').write_text(SOURCE)

    return load_config(str(config_path))


class TestSolidityCompiler:
    """Test compilation to artifacts"""

    def test_collect_sources(self, project):
        sources = SolidityCompiler(project).collect_sources()

        assert list(sources) == ['contracts/Memeverse.sol']
        assert 'contract Memeverse' in sources['contracts/Memeverse.sol']['content']

    def test_build_input(self, project):
        compiler = SolidityCompiler(project)

        solc_input = compiler.build_input(compiler.collect_sources())

        assert solc_input['language'] == 'Solidity'
        assert solc_input['settings']['optimizer'] == {'enabled': True, 'runs': 200}

    @patch('blockchain.compiler.solcx')
    def test_compile_writes_artifacts(self, mock_solcx, project):
        """Test artifacts and build info are written in Hardhat layout"""
        mock_solcx.get_installed_solc_versions.return_value = []
        mock_solcx.get_solc_version.return_value = '0.8.0+commit.c7dfd78e'
        mock_solcx.compile_standard.return_value = solc_output()

        written = SolidityCompiler(project).compile()

        assert len(written) == 1
        mock_solcx.install_solc.assert_called_once_with('0.8.0')

        artifact = load_artifact(project.artifacts_dir, 'Memeverse')
        assert artifact['_format'] == 'hh-sol-artifact-1'
        assert artifact['sourceName'] == 'contracts/Memeverse.sol'
        assert artifact['bytecode'] == '0x6080'
        assert artifact['deployedBytecode'] == '0x6081'
        assert artifact['abi'] == ABI

        build_info = find_build_info(project.artifacts_dir, 'contracts/Memeverse.sol')
        assert build_info['solcLongVersion'] == '0.8.0+commit.c7dfd78e'
        assert 'contracts/Memeverse.sol' in build_info['input']['sources']

    @patch('blockchain.compiler.solcx')
    def test_installed_solc_reused(self, mock_solcx, project):
        mock_solcx.get_installed_solc_versions.return_value = ['0.8.0']
        mock_solcx.get_solc_version.return_value = '0.8.0+commit.c7dfd78e'
        mock_solcx.compile_standard.return_value = solc_output()

        SolidityCompiler(project).compile()

        mock_solcx.install_solc.assert_not_called()

    @patch('blockchain.compiler.solcx')
    def test_no_sources(self, mock_solcx, project, tmp_path):
        (tmp_path / 'contracts' / 'Memeverse.sol').unlink()

        assert SolidityCompiler(project).compile() == []
        mock_solcx.compile_standard.assert_not_called()

    def test_missing_build_info(self, project):
        with pytest.raises(ValueError, match='No build info'):
            find_build_info(project.artifacts_dir, 'contracts/Memeverse.sol')


if __name__ == "__main__":
    pytest.main([__file__, '-v'])
