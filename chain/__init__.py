"""On-chain verifier access over JSON-RPC."""

from .abi import encode_verify_call, decode_bool, function_selector
from .verifier import ChainConfig, JsonRpcClient, OnChainVerifier, VerifierDeployer

__all__ = [
    'ChainConfig',
    'JsonRpcClient',
    'OnChainVerifier',
    'VerifierDeployer',
    'encode_verify_call',
    'decode_bool',
    'function_selector',
]
