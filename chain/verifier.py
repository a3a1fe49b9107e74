"""
On-chain verifier adapter.

Talks JSON-RPC to an Ethereum development node (Hardhat, Anvil, Ganache):
deploys verifier contracts from compiled artifacts and calls ``verifyProof``
with ``eth_call``. Verification is a read; it never mutates chain state.
"""

import asyncio
import itertools
import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

import requests

from zk.calldata import Calldata
from zk.errors import ChainError, DeploymentError, VerificationCallFailure
from zk.zk_proofs import ProvingSystem

from .abi import decode_bool, encode_verify_call

logger = logging.getLogger(__name__)


@dataclass
class ChainConfig:
    """JSON-RPC endpoint and deployment settings"""
    rpc_url: str = "http://127.0.0.1:8545"
    artifacts_dir: Path = Path("artifacts/contracts")
    request_timeout: float = 30.0
    receipt_timeout: float = 60.0
    poll_interval: float = 0.5
    deploy_gas: int = 6_000_000
    from_address: Optional[str] = None

    def __post_init__(self):
        self.artifacts_dir = Path(self.artifacts_dir)


class JsonRpcClient:
    """Minimal JSON-RPC 2.0 client over HTTP"""

    def __init__(self, url: str, timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self._ids = itertools.count(1)

    def request(self, method: str, params: List[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            raise ChainError(f"{method} transport failure: {e}") from e
        except ValueError as e:
            raise ChainError(f"{method} returned invalid JSON: {e}") from e

        if body.get('error') is not None:
            error = body['error']
            message = error.get('message', error) if isinstance(error, dict) else error
            raise ChainError(f"{method} failed: {message}")
        if 'result' not in body:
            raise ChainError(f"{method} response has no result")
        return body['result']

    async def arequest(self, method: str, params: List[Any]) -> Any:
        return await asyncio.to_thread(self.request, method, params)


class OnChainVerifier:
    """A deployed verifier contract for one proving system"""

    def __init__(self, rpc: JsonRpcClient, address: str, proving_system: ProvingSystem):
        self.rpc = rpc
        self.address = address
        self.proving_system = proving_system

    async def verify(self, calldata: Calldata) -> bool:
        if calldata.proving_system is not self.proving_system:
            raise VerificationCallFailure(
                f"{calldata.proving_system.value} calldata sent to a "
                f"{self.proving_system.value} verifier")

        data = '0x' + encode_verify_call(calldata).hex()
        try:
            result = await self.rpc.arequest('eth_call', [{'to': self.address, 'data': data}, 'latest'])
        except ChainError as e:
            raise VerificationCallFailure(f"verifyProof call failed: {e}") from e

        outcome = decode_bool(result)
        logger.info(
            f"{self.proving_system.value} verifier at {self.address} returned {outcome}")
        return outcome


class VerifierDeployer:
    """Deploys compiled verifier contracts to a development node"""

    def __init__(self, config: Optional[ChainConfig] = None, rpc: Optional[JsonRpcClient] = None):
        self.config = config or ChainConfig()
        self.rpc = rpc or JsonRpcClient(self.config.rpc_url, self.config.request_timeout)

    def artifact_path(self, contract_name: str) -> Path:
        """Hardhat layout: <artifacts>/<Name>.sol/<Name>.json"""
        return self.config.artifacts_dir / f"{contract_name}.sol" / f"{contract_name}.json"

    def load_bytecode(self, contract_name: str) -> str:
        path = self.artifact_path(contract_name)
        try:
            artifact = json.loads(path.read_text())
        except (OSError, ValueError) as e:
            raise DeploymentError(f"Cannot read artifact {path}: {e}") from e

        bytecode = artifact.get('bytecode')
        if isinstance(bytecode, dict):
            bytecode = bytecode.get('object')
        if not bytecode or bytecode == '0x':
            raise DeploymentError(f"Artifact {path} has no bytecode")
        if not bytecode.startswith('0x'):
            bytecode = '0x' + bytecode
        return bytecode

    async def _sender(self) -> str:
        if self.config.from_address:
            return self.config.from_address
        accounts = await self.rpc.arequest('eth_accounts', [])
        if not accounts:
            raise DeploymentError("Node exposes no unlocked accounts")
        return accounts[0]

    async def deploy(self, contract_name: str, proving_system: ProvingSystem) -> OnChainVerifier:
        bytecode = self.load_bytecode(contract_name)
        try:
            sender = await self._sender()
            tx_hash = await self.rpc.arequest('eth_sendTransaction', [{
                'from': sender,
                'data': bytecode,
                'gas': hex(self.config.deploy_gas),
            }])
            receipt = await self._wait_for_receipt(tx_hash)
        except DeploymentError:
            raise
        except ChainError as e:
            raise DeploymentError(f"Deploying {contract_name} failed: {e}") from e

        if receipt.get('status') == '0x0':
            raise DeploymentError(f"Deployment transaction {tx_hash} reverted")
        address = receipt.get('contractAddress')
        if not address:
            raise DeploymentError(f"Receipt for {tx_hash} has no contract address")

        logger.info(f"Deployed {contract_name} at {address}")
        return OnChainVerifier(self.rpc, address, proving_system)

    async def _wait_for_receipt(self, tx_hash: str) -> dict:
        deadline = time.time() + self.config.receipt_timeout
        while True:
            receipt = await self.rpc.arequest('eth_getTransactionReceipt', [tx_hash])
            if receipt:
                return receipt
            if time.time() >= deadline:
                raise DeploymentError(
                    f"No receipt for {tx_hash} after {self.config.receipt_timeout}s")
            await asyncio.sleep(self.config.poll_interval)
