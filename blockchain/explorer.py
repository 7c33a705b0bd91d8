"""
Block Explorer
Source code verification through the Etherscan API
"""

import json
import asyncio
from typing import Any, Dict, List, Optional
import aiohttp
from eth_abi import encode
from loguru import logger


class ExplorerClient:
    """
    Etherscan v2 API client (one endpoint for every chain, selected by chainid)
    """

    DEFAULT_API_URL = "https://api.etherscan.io/v2/api"

    def __init__(
        self,
        api_key: Optional[str],
        chain_id: int,
        api_url: Optional[str] = None,
        poll_interval: float = 5,
        max_status_checks: int = 20
    ):
        """
        Initialize explorer client

        Args:
            api_key: Explorer API key
            chain_id: Chain the contract lives on
            api_url: API endpoint
            poll_interval: Seconds between verification status checks
            max_status_checks: Status checks before giving up
        """
        if not api_key:
            raise ValueError("Block explorer API key is not set (see explorer.api_key_env in config)")

        self.api_key = api_key
        self.chain_id = chain_id
        self.api_url = api_url or self.DEFAULT_API_URL
        self.poll_interval = poll_interval
        self.max_status_checks = max_status_checks

    @staticmethod
    def encode_constructor_args(types: List[str], args: List[Any]) -> str:
        """ABI-encode constructor arguments as hex without 0x"""
        if not types:
            return ''
        return encode(types, args).hex()

    async def verify_contract(
        self,
        address: str,
        fully_qualified_name: str,
        build_info: Dict,
        constructor_args_hex: str = ''
    ) -> str:
        """
        Submit source for verification and wait for the outcome

        Args:
            address: Deployed contract address
            fully_qualified_name: "contracts/File.sol:Name"
            build_info: Build info holding the solc standard JSON input
            constructor_args_hex: ABI-encoded constructor arguments

        Returns:
            Final explorer status message
        """
        payload = {
            'module': 'contract',
            'action': 'verifysourcecode',
            'apikey': self.api_key,
            'contractaddress': address,
            'sourceCode': json.dumps(build_info['input']),
            'codeformat': 'solidity-standard-json-input',
            'contractname': fully_qualified_name,
            'compilerversion': f"v{build_info['solcLongVersion']}",
            # Field name is misspelled in the Etherscan API
            'constructorArguements': constructor_args_hex
        }

        async with aiohttp.ClientSession() as session:
            logger.info(f"Submitting {fully_qualified_name} at {address} for verification")
            response = await self._request(session, 'POST', data=payload)

            if response.get('status') != '1':
                result = str(response.get('result', ''))
                if 'already verified' in result.lower():
                    logger.success(f"{address} is already verified")
                    return result
                raise RuntimeError(f"Verification request rejected: {result}")

            guid = response['result']
            logger.info(f"Verification submitted, guid {guid}")

            return await self._wait_for_verification(session, guid)

    async def _wait_for_verification(self, session: aiohttp.ClientSession, guid: str) -> str:
        params = {
            'module': 'contract',
            'action': 'checkverifystatus',
            'apikey': self.api_key,
            'guid': guid
        }

        for _ in range(self.max_status_checks):
            await asyncio.sleep(self.poll_interval)
            response = await self._request(session, 'GET', params=params)
            result = str(response.get('result', ''))

            if 'pending' in result.lower():
                logger.debug(f"Verification pending: {result}")
                continue

            if response.get('status') == '1' or 'already verified' in result.lower():
                logger.success(f"Verification result: {result}")
                return result

            raise RuntimeError(f"Verification failed: {result}")

        raise TimeoutError(f"Verification {guid} still pending after {self.max_status_checks} checks")

    async def _request(self, session: aiohttp.ClientSession, method: str, **kwargs) -> Dict:
        params = dict(kwargs.pop('params', {}))
        params['chainid'] = self.chain_id

        async with session.request(
            method,
            self.api_url,
            params=params,
            timeout=aiohttp.ClientTimeout(total=30),
            **kwargs
        ) as response:
            response.raise_for_status()
            return await response.json(content_type=None)
