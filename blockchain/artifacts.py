"""
Artifacts
Locates compiled contract artifacts and links library addresses into bytecode
"""

import os
import json
import glob
from typing import Dict, List, Optional
from web3 import Web3
from loguru import logger


def find_artifact_path(artifacts_dir: str, contract_name: str) -> str:
    """
    Find the artifact file for a contract

    Args:
        artifacts_dir: Root of the artifacts tree
        contract_name: Bare name ("Token") or fully qualified ("contracts/Token.sol:Token")

    Returns:
        Path to the artifact JSON
    """
    if ':' in contract_name:
        source_name, name = contract_name.rsplit(':', 1)
        path = os.path.join(artifacts_dir, source_name, f"{name}.json")
        if not os.path.exists(path):
            raise ValueError(f"Artifact for {contract_name} not found at {path}")
        return path

    pattern = os.path.join(artifacts_dir, '**', f"{contract_name}.json")
    matches = [
        path for path in glob.glob(pattern, recursive=True)
        if 'build-info' not in path.split(os.sep)
    ]

    if not matches:
        raise ValueError(
            f"Artifact for contract '{contract_name}' not found in {artifacts_dir}. "
            "Run 'python main.py compile' first"
        )

    if len(matches) > 1:
        candidates = ', '.join(sorted(_qualified_name(artifacts_dir, path) for path in matches))
        raise ValueError(
            f"Multiple artifacts match '{contract_name}', use a fully qualified name: {candidates}"
        )

    return matches[0]


def load_artifact(artifacts_dir: str, contract_name: str) -> Dict:
    """Load artifact JSON for a contract"""
    path = find_artifact_path(artifacts_dir, contract_name)

    with open(path, 'r') as f:
        artifact = json.load(f)

    for key in ('abi', 'bytecode'):
        if key not in artifact:
            raise ValueError(f"Artifact {path} has no '{key}' field")

    logger.debug(f"Loaded artifact {path}")
    return artifact


def link_bytecode(
    bytecode: str,
    link_references: Dict[str, Dict[str, List[Dict]]],
    libraries: Optional[Dict[str, str]] = None
) -> str:
    """
    Replace library placeholders with deployed library addresses

    Args:
        bytecode: Hex bytecode with optional 0x prefix
        link_references: {sourceName: {libName: [{start, length}]}} (byte offsets)
        libraries: Library name (bare or "source:Name") -> address

    Returns:
        Linked bytecode with 0x prefix
    """
    libraries = libraries or {}
    code = bytecode[2:] if bytecode.startswith('0x') else bytecode
    used = set()

    for source_name, libs in (link_references or {}).items():
        for lib_name, offsets in libs.items():
            qualified = f"{source_name}:{lib_name}"

            if qualified in libraries:
                address = libraries[qualified]
                used.add(qualified)
            elif lib_name in libraries:
                address = libraries[lib_name]
                used.add(lib_name)
            else:
                raise ValueError(f"Missing address for linked library {qualified}")

            address_hex = Web3.to_checksum_address(address)[2:].lower()

            for ref in offsets:
                start = ref['start'] * 2
                length = ref['length'] * 2
                code = code[:start] + address_hex[:length] + code[start + length:]

    unused = set(libraries) - used
    if unused:
        raise ValueError(f"Libraries not referenced by this contract: {', '.join(sorted(unused))}")

    return '0x' + code


def _qualified_name(artifacts_dir: str, path: str) -> str:
    source_name = os.path.relpath(os.path.dirname(path), artifacts_dir)
    name = os.path.splitext(os.path.basename(path))[0]
    return f"{source_name.replace(os.sep, '/')}:{name}"
