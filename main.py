"""
Deployment Toolkit - Main Entry Point
Task runner for compiling, deploying and verifying contracts
"""

import os
import sys
import asyncio
import argparse
from typing import Dict, List, Optional
from loguru import logger

from blockchain.compiler import SolidityCompiler
from utils.config_loader import load_config
from scripts.deploy_contract import DeploymentDescriptor, deploy_contract
from scripts.list_accounts import list_accounts
from scripts.verify_contract import verify_contract


def configure_logging():
    """Console and rotating file sinks"""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=os.getenv('LOG_LEVEL', 'INFO')
    )
    logger.add(
        "data/logs/deploy.log",
        rotation="1 day",
        retention="7 days",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}",
        level="DEBUG"
    )


def parse_libraries(entries: List[str]) -> Dict[str, str]:
    libraries = {}
    for entry in entries or []:
        name, sep, address = entry.partition('=')
        if not sep or not name or not address:
            raise ValueError(f"Library must be given as Name=0xAddress, got {entry!r}")
        libraries[name] = address
    return libraries


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Smart contract deployment tasks")
    parser.add_argument('--config', help="Path to network config JSON")
    parser.add_argument('--network', help="Network name from the config (default: default_network)")

    subparsers = parser.add_subparsers(dest='task', required=True)

    subparsers.add_parser('accounts', help="Prints the list of accounts")
    subparsers.add_parser('compile', help="Compiles the Solidity sources")

    deploy_parser = subparsers.add_parser('deploy', help="Deploys a contract")
    deploy_parser.add_argument('contract', help="Contract name or path/File.sol:Name")
    deploy_parser.add_argument('args', nargs='*', help="Constructor arguments")
    deploy_parser.add_argument('--library', action='append', default=[], help="Linked library as Name=0xAddress")
    deploy_parser.add_argument('--verify', action='store_true', help="Verify source on the block explorer after deploying")

    verify_parser = subparsers.add_parser('verify', help="Verifies a deployed contract on the block explorer")
    verify_parser.add_argument('address', help="Deployed contract address")
    verify_parser.add_argument('contract', help="Contract name or path/File.sol:Name")
    verify_parser.add_argument('args', nargs='*', help="Constructor arguments used at deployment")

    return parser


async def run(args: argparse.Namespace):
    """Dispatch a parsed task"""
    config = load_config(args.config)

    if args.task == 'accounts':
        list_accounts(config, args.network)

    elif args.task == 'compile':
        SolidityCompiler(config).compile()

    elif args.task == 'deploy':
        descriptor = DeploymentDescriptor(
            network=args.network,
            contract_name=args.contract,
            constructor_args=args.args,
            libraries=parse_libraries(args.library)
        )
        result = await deploy_contract(config, descriptor)

        if args.verify:
            await verify_contract(config, args.network, result.address, args.contract, args.args)

    elif args.task == 'verify':
        await verify_contract(config, args.network, args.address, args.contract, args.args)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point

    Returns:
        Process exit status: 0 on success, 1 on any error
    """
    try:
        args = build_parser().parse_args(argv)
    except SystemExit as e:
        # argparse exits 2 on bad usage and 0 after --help
        return 1 if e.code else 0

    try:
        asyncio.run(run(args))
        return 0
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 1
    except Exception as e:
        logger.opt(exception=e).error(f"Task '{args.task}' failed: {e}")
        return 1


if __name__ == "__main__":
    configure_logging()
    sys.exit(main())
