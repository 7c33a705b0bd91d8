"""
Contract Deployment Wrapper
Deploys the contract named in the config "deployment" section
"""

import sys
import json
import argparse
from typing import List, Optional
from loguru import logger

import main
from utils.config_loader import load_config


def build_argv(argv: List[str]) -> List[str]:
    """Translate wrapper options into a task runner 'deploy' command"""
    parser = argparse.ArgumentParser(description="Deploy the configured contract")
    parser.add_argument('--config', help="Path to network config JSON")
    parser.add_argument('--network', help="Network name from the config")
    args = parser.parse_args(argv)

    deployment = load_config(args.config).deployment
    if not deployment.get('contract'):
        raise ValueError("No 'deployment.contract' in config")

    forwarded = []
    if args.config:
        forwarded += ['--config', args.config]
    if args.network:
        forwarded += ['--network', args.network]

    # Arrays and tuples are parsed back from JSON by the deploy task
    constructor_args = [arg if isinstance(arg, str) else json.dumps(arg) for arg in deployment.get('args', [])]

    return forwarded + ['deploy', deployment['contract']] + constructor_args


def run(argv: Optional[List[str]] = None) -> int:
    try:
        task_argv = build_argv(sys.argv[1:] if argv is None else argv)
    except SystemExit as e:
        return 1 if e.code else 0
    except Exception as e:
        logger.opt(exception=e).error(f"Deployment failed: {e}")
        return 1

    return main.main(task_argv)


if __name__ == "__main__":
    print("=" * 70)
    print("Contract Deployment")
    print("=" * 70)
    print()

    main.configure_logging()
    sys.exit(run())
