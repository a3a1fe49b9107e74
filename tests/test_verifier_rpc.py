"""
Tests for the JSON-RPC verifier adapter and contract deployment.
"""

import asyncio
import json

import pytest
import requests

from chain.abi import function_selector
from chain.verifier import ChainConfig, JsonRpcClient, OnChainVerifier, VerifierDeployer
from zk.calldata import Groth16Calldata, PlonkCalldata
from zk.errors import ChainError, DeploymentError, VerificationCallFailure
from zk.field import FieldElement
from zk.zk_proofs import ProvingSystem

TRUE_WORD = '0x' + '0' * 63 + '1'
FALSE_WORD = '0x' + '0' * 64


class FakeResponse:

    def __init__(self, body, status_code=200):
        self.body = body
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self.body, Exception):
            raise self.body
        return self.body


class FakeSession:
    """Answers JSON-RPC methods from a handler table"""

    def __init__(self, handlers):
        self.handlers = handlers
        self.requests = []

    def post(self, url, json=None, timeout=None):
        self.requests.append(json)
        handler = self.handlers[json['method']]
        outcome = handler(json['params'])
        if isinstance(outcome, FakeResponse):
            return outcome
        if isinstance(outcome, Exception):
            raise outcome
        return FakeResponse({'jsonrpc': '2.0', 'id': json['id'], 'result': outcome})


def rpc_with(handlers):
    session = FakeSession(handlers)
    return JsonRpcClient("http://node", session=session), session


class TestJsonRpcClient:

    def test_returns_result(self):
        rpc, session = rpc_with({'eth_chainId': lambda p: '0x7a69'})
        assert rpc.request('eth_chainId', []) == '0x7a69'
        assert session.requests[0]['jsonrpc'] == '2.0'

    def test_request_ids_increase(self):
        rpc, session = rpc_with({'eth_chainId': lambda p: '0x1'})
        rpc.request('eth_chainId', [])
        rpc.request('eth_chainId', [])
        assert [r['id'] for r in session.requests] == [1, 2]

    def test_error_member_raises(self):
        rpc, _ = rpc_with({'eth_call': lambda p: FakeResponse(
            {'jsonrpc': '2.0', 'id': 1, 'error': {'code': -32000, 'message': 'execution reverted'}})})
        with pytest.raises(ChainError, match='execution reverted'):
            rpc.request('eth_call', [])

    def test_transport_failure_raises(self):
        rpc, _ = rpc_with({'eth_call': lambda p: requests.ConnectionError("refused")})
        with pytest.raises(ChainError):
            rpc.request('eth_call', [])

    def test_http_error_raises(self):
        rpc, _ = rpc_with({'eth_call': lambda p: FakeResponse({}, status_code=502)})
        with pytest.raises(ChainError):
            rpc.request('eth_call', [])

    def test_invalid_json_raises(self):
        rpc, _ = rpc_with({'eth_call': lambda p: FakeResponse(ValueError("not json"))})
        with pytest.raises(ChainError):
            rpc.request('eth_call', [])


class TestOnChainVerifier:

    def test_true_result(self):
        rpc, session = rpc_with({'eth_call': lambda p: TRUE_WORD})
        verifier = OnChainVerifier(rpc, '0xverifier', ProvingSystem.GROTH16)

        assert asyncio.run(verifier.verify(Groth16Calldata.zero(1))) is True

        call, block = session.requests[0]['params']
        assert block == 'latest'
        assert call['to'] == '0xverifier'
        selector = function_selector(
            "verifyProof(uint256[2],uint256[2][2],uint256[2],uint256[1])").hex()
        assert call['data'].startswith('0x' + selector)

    def test_false_result_is_not_a_failure(self):
        rpc, _ = rpc_with({'eth_call': lambda p: FALSE_WORD})
        verifier = OnChainVerifier(rpc, '0xverifier', ProvingSystem.PLONK)
        calldata = PlonkCalldata(proof='0x00', public_signals=(FieldElement(0),))

        assert asyncio.run(verifier.verify(calldata)) is False

    def test_revert_is_a_call_failure(self):
        rpc, _ = rpc_with({'eth_call': lambda p: FakeResponse(
            {'jsonrpc': '2.0', 'id': 1, 'error': {'code': 3, 'message': 'execution reverted'}})})
        verifier = OnChainVerifier(rpc, '0xverifier', ProvingSystem.GROTH16)

        with pytest.raises(VerificationCallFailure):
            asyncio.run(verifier.verify(Groth16Calldata.zero(1)))

    def test_empty_result_is_a_call_failure(self):
        rpc, _ = rpc_with({'eth_call': lambda p: '0x'})
        verifier = OnChainVerifier(rpc, '0xnothing', ProvingSystem.GROTH16)

        with pytest.raises(VerificationCallFailure):
            asyncio.run(verifier.verify(Groth16Calldata.zero(1)))

    def test_wrong_proving_system(self):
        rpc, session = rpc_with({'eth_call': lambda p: TRUE_WORD})
        verifier = OnChainVerifier(rpc, '0xverifier', ProvingSystem.PLONK)

        with pytest.raises(VerificationCallFailure):
            asyncio.run(verifier.verify(Groth16Calldata.zero(1)))
        assert session.requests == []

    def test_repeated_calls_are_identical(self):
        rpc, session = rpc_with({'eth_call': lambda p: TRUE_WORD})
        verifier = OnChainVerifier(rpc, '0xverifier', ProvingSystem.GROTH16)
        calldata = Groth16Calldata.zero(1)

        first = asyncio.run(verifier.verify(calldata))
        second = asyncio.run(verifier.verify(calldata))

        assert first == second
        assert session.requests[0]['params'] == session.requests[1]['params']


@pytest.fixture
def artifacts(tmp_path):
    contract_dir = tmp_path / "Verifier.sol"
    contract_dir.mkdir()
    (contract_dir / "Verifier.json").write_text(json.dumps({
        'contractName': 'Verifier',
        'bytecode': '0x6080',
    }))
    return tmp_path


class TestVerifierDeployer:

    def deployer(self, artifacts, handlers, **overrides):
        config = ChainConfig(artifacts_dir=artifacts, poll_interval=0, **overrides)
        rpc, session = rpc_with(handlers)
        return VerifierDeployer(config, rpc), session

    def test_deploys_and_polls_for_receipt(self, artifacts):
        receipts = iter([None, {'status': '0x1', 'contractAddress': '0xcontract'}])
        deployer, session = self.deployer(artifacts, {
            'eth_accounts': lambda p: ['0xsender'],
            'eth_sendTransaction': lambda p: '0xtx',
            'eth_getTransactionReceipt': lambda p: next(receipts),
        })

        verifier = asyncio.run(deployer.deploy('Verifier', ProvingSystem.GROTH16))

        assert verifier.address == '0xcontract'
        assert verifier.proving_system is ProvingSystem.GROTH16
        tx = [r for r in session.requests if r['method'] == 'eth_sendTransaction'][0]['params'][0]
        assert tx['from'] == '0xsender'
        assert tx['data'] == '0x6080'

    def test_configured_sender_skips_account_lookup(self, artifacts):
        deployer, session = self.deployer(artifacts, {
            'eth_sendTransaction': lambda p: '0xtx',
            'eth_getTransactionReceipt': lambda p: {'status': '0x1', 'contractAddress': '0xc'},
        }, from_address='0xme')

        asyncio.run(deployer.deploy('Verifier', ProvingSystem.GROTH16))
        assert 'eth_accounts' not in [r['method'] for r in session.requests]

    def test_reverted_deployment(self, artifacts):
        deployer, _ = self.deployer(artifacts, {
            'eth_accounts': lambda p: ['0xsender'],
            'eth_sendTransaction': lambda p: '0xtx',
            'eth_getTransactionReceipt': lambda p: {'status': '0x0', 'contractAddress': None},
        })
        with pytest.raises(DeploymentError):
            asyncio.run(deployer.deploy('Verifier', ProvingSystem.GROTH16))

    def test_receipt_timeout(self, artifacts):
        deployer, _ = self.deployer(artifacts, {
            'eth_accounts': lambda p: ['0xsender'],
            'eth_sendTransaction': lambda p: '0xtx',
            'eth_getTransactionReceipt': lambda p: None,
        }, receipt_timeout=0)
        with pytest.raises(DeploymentError):
            asyncio.run(deployer.deploy('Verifier', ProvingSystem.GROTH16))

    def test_missing_artifact(self, artifacts):
        deployer, _ = self.deployer(artifacts, {})
        with pytest.raises(DeploymentError):
            asyncio.run(deployer.deploy('PlonkVerifier', ProvingSystem.PLONK))

    def test_rpc_failure_is_a_deployment_error(self, artifacts):
        deployer, _ = self.deployer(artifacts, {
            'eth_accounts': lambda p: requests.ConnectionError("refused"),
        })
        with pytest.raises(DeploymentError):
            asyncio.run(deployer.deploy('Verifier', ProvingSystem.GROTH16))

    def test_foundry_style_bytecode_object(self, artifacts):
        contract_dir = artifacts / "PlonkVerifier.sol"
        contract_dir.mkdir()
        (contract_dir / "PlonkVerifier.json").write_text(json.dumps({'bytecode': {'object': '6080'}}))
        deployer, _ = self.deployer(artifacts, {})

        assert deployer.load_bytecode('PlonkVerifier') == '0x6080'
