"""
Solidity Compiler
Compiles project sources with solc and writes Hardhat-style artifacts
"""

import os
import json
import glob
import hashlib
from typing import Dict, List
import solcx
from loguru import logger

from utils.config_loader import ProjectConfig

ARTIFACT_FORMAT = "hh-sol-artifact-1"
BUILD_INFO_FORMAT = "hh-sol-build-info-1"


class SolidityCompiler:
    """
    Wraps py-solc-x's standard JSON interface
    """

    def __init__(self, config: ProjectConfig):
        """
        Initialize compiler

        Args:
            config: Project configuration (solidity settings and paths)
        """
        self.config = config
        self.version = config.solidity.get('version', '0.8.0')
        self.optimizer = config.solidity.get('optimizer', {'enabled': False, 'runs': 200})

    def ensure_solc(self) -> str:
        """
        Install the configured solc if needed

        Returns:
            Long version string, e.g. 0.8.0+commit.c7dfd78e
        """
        installed = [str(version) for version in solcx.get_installed_solc_versions()]

        if self.version not in installed:
            logger.info(f"Installing solc {self.version}...")
            solcx.install_solc(self.version)

        solcx.set_solc_version(self.version)
        return str(solcx.get_solc_version(with_commit_hash=True))

    def collect_sources(self) -> Dict[str, Dict[str, str]]:
        """Read every .sol file under the sources directory"""
        sources = {}
        pattern = os.path.join(self.config.sources_dir, '**', '*.sol')

        for path in sorted(glob.glob(pattern, recursive=True)):
            source_name = os.path.relpath(path, self.config.root).replace(os.sep, '/')
            with open(path, 'r') as f:
                sources[source_name] = {'content': f.read()}

        return sources

    def build_input(self, sources: Dict[str, Dict[str, str]]) -> Dict:
        """Standard JSON input for solc"""
        return {
            'language': 'Solidity',
            'sources': sources,
            'settings': {
                'optimizer': self.optimizer,
                'outputSelection': {
                    '*': {
                        '*': ['abi', 'evm.bytecode', 'evm.deployedBytecode', 'metadata']
                    }
                }
            }
        }

    def compile(self) -> List[str]:
        """
        Compile all sources and write artifacts

        Returns:
            Paths of the written artifact files
        """
        sources = self.collect_sources()

        if not sources:
            logger.warning(f"No Solidity sources found in {self.config.sources_dir}")
            return []

        long_version = self.ensure_solc()
        solc_input = self.build_input(sources)

        logger.info(f"Compiling {len(sources)} source file(s) with solc {long_version}")
        output = solcx.compile_standard(
            solc_input,
            solc_version=self.version,
            allow_paths=self.config.root
        )

        for error in output.get('errors', []):
            if error.get('severity') == 'warning':
                logger.warning(error.get('formattedMessage', error.get('message')))

        build_info_path = self._write_build_info(solc_input, long_version)
        written = []

        for source_name, contracts in output.get('contracts', {}).items():
            for contract_name, data in contracts.items():
                artifact = self._to_artifact(source_name, contract_name, data)
                written.append(self._write_artifact(source_name, contract_name, artifact, build_info_path))

        logger.success(f"Compiled {len(written)} contract(s)")
        return written

    @staticmethod
    def _to_artifact(source_name: str, contract_name: str, data: Dict) -> Dict:
        bytecode = data['evm']['bytecode']
        deployed = data['evm']['deployedBytecode']

        return {
            '_format': ARTIFACT_FORMAT,
            'contractName': contract_name,
            'sourceName': source_name,
            'abi': data['abi'],
            'bytecode': '0x' + bytecode['object'],
            'deployedBytecode': '0x' + deployed['object'],
            'linkReferences': bytecode.get('linkReferences', {}),
            'deployedLinkReferences': deployed.get('linkReferences', {})
        }

    def _write_artifact(self, source_name: str, contract_name: str, artifact: Dict, build_info_path: str) -> str:
        directory = os.path.join(self.config.artifacts_dir, source_name)
        os.makedirs(directory, exist_ok=True)

        path = os.path.join(directory, f"{contract_name}.json")
        with open(path, 'w') as f:
            json.dump(artifact, f, indent=2)

        # Debug file points back at the build info, as Hardhat does
        with open(os.path.join(directory, f"{contract_name}.dbg.json"), 'w') as f:
            json.dump({
                '_format': 'hh-sol-dbg-1',
                'buildInfo': os.path.relpath(build_info_path, directory)
            }, f, indent=2)

        logger.debug(f"Wrote {path}")
        return path

    def _write_build_info(self, solc_input: Dict, long_version: str) -> str:
        directory = os.path.join(self.config.artifacts_dir, 'build-info')
        os.makedirs(directory, exist_ok=True)

        encoded = json.dumps(solc_input, sort_keys=True).encode()
        build_id = hashlib.md5(encoded + long_version.encode()).hexdigest()

        path = os.path.join(directory, f"{build_id}.json")
        with open(path, 'w') as f:
            json.dump({
                '_format': BUILD_INFO_FORMAT,
                'id': build_id,
                'solcVersion': self.version,
                'solcLongVersion': long_version,
                'input': solc_input
            }, f)

        return path


def find_build_info(artifacts_dir: str, source_name: str) -> Dict:
    """
    Find the build info that compiled a given source

    Args:
        artifacts_dir: Root of the artifacts tree
        source_name: Source path as recorded in the artifact

    Returns:
        Build info dict with 'input' and 'solcLongVersion'
    """
    pattern = os.path.join(artifacts_dir, 'build-info', '*.json')

    for path in sorted(glob.glob(pattern), key=os.path.getmtime, reverse=True):
        with open(path, 'r') as f:
            build_info = json.load(f)

        if source_name in build_info.get('input', {}).get('sources', {}):
            return build_info

    raise ValueError(f"No build info found for {source_name}. Run 'python main.py compile' first")
