"""
The scenario suite and runner wiring.

Every proving system gets both branches: a genuine proof that must verify and
a forged one that must be rejected.
"""

import logging
from typing import List, Optional

from chain.verifier import OnChainVerifier, VerifierDeployer
from config.config import SystemConfig
from utils.utils import PerformanceMonitor
from zk.calldata import INVALID_PLONK_PROOF, Groth16Calldata, PlonkCalldata
from zk.circuits import CircuitConfig, CircuitRegistry, default_circuits
from zk.field import FieldElement
from zk.zk_proofs import SnarkjsBackend

from .in_memory import InMemoryBackend, InMemoryVerifierFactory
from .interfaces import ProverBackend, Verifier, VerifierFactory, WitnessEvaluator
from .scenario import Expectation, Scenario, ScenarioRunner, ScenarioStage

logger = logging.getLogger(__name__)

WitnessEvaluator.register(SnarkjsBackend)
ProverBackend.register(SnarkjsBackend)
Verifier.register(OnChainVerifier)


class ContractVerifierFactory(VerifierFactory):
    """Deploys a fresh verifier contract for every scenario"""

    def __init__(self, deployer: VerifierDeployer):
        self.deployer = deployer

    async def create(self, circuit: CircuitConfig) -> OnChainVerifier:
        return await self.deployer.deploy(circuit.verifier_contract, circuit.proving_system)


def build_default_suite(circuits: Optional[CircuitRegistry] = None) -> List[Scenario]:
    circuits = circuits or default_circuits()
    hello = circuits.get("HelloWorld")
    mult3 = circuits.get("Multiplier3")
    mult3_plonk = circuits.get("Multiplier3_plonk")

    return [
        Scenario(
            name="HelloWorld multiplies two numbers",
            circuit=hello,
            inputs={'a': 2, 'b': 3},
            expected_witness={0: 1, 1: 6},
            final_stage=ScenarioStage.WITNESS_COMPUTED,
        ),
        Scenario(
            name="HelloWorld groth16 accepts a correct proof",
            circuit=hello,
            inputs={'a': 2, 'b': 3},
            expect=Expectation.ACCEPT,
        ),
        Scenario(
            name="HelloWorld groth16 rejects an invalid proof",
            circuit=hello,
            expect=Expectation.REJECT,
            forged_calldata=Groth16Calldata.zero(hello.n_public),
        ),
        Scenario(
            name="Multiplier3 multiplies three numbers",
            circuit=mult3,
            inputs={'a': 2, 'b': 3, 'c': 5},
            expected_witness={0: 1, 1: 30},
            final_stage=ScenarioStage.WITNESS_COMPUTED,
        ),
        Scenario(
            name="Multiplier3 groth16 accepts a correct proof",
            circuit=mult3,
            inputs={'a': 2, 'b': 3, 'c': 5},
            expect=Expectation.ACCEPT,
        ),
        Scenario(
            name="Multiplier3 groth16 rejects an invalid proof",
            circuit=mult3,
            expect=Expectation.REJECT,
            forged_calldata=Groth16Calldata.zero(mult3.n_public),
        ),
        Scenario(
            name="Multiplier3 plonk accepts a correct proof",
            circuit=mult3_plonk,
            inputs={'a': 2, 'b': 3, 'c': 5},
            expect=Expectation.ACCEPT,
        ),
        Scenario(
            name="Multiplier3 plonk rejects an invalid proof",
            circuit=mult3_plonk,
            expect=Expectation.REJECT,
            forged_calldata=PlonkCalldata(
                proof=INVALID_PLONK_PROOF,
                public_signals=(FieldElement(0),),
            ),
        ),
    ]


def build_runner(config: SystemConfig, backend: str = "snarkjs",
                 monitor: Optional[PerformanceMonitor] = None) -> ScenarioRunner:
    """Runner against snarkjs + a JSON-RPC node, or fully in memory"""
    if backend == "memory":
        prover = InMemoryBackend()
        verifiers: VerifierFactory = InMemoryVerifierFactory()
        evaluator: WitnessEvaluator = prover
    elif backend == "snarkjs":
        prover = SnarkjsBackend(config.zk_config)
        evaluator = prover
        verifiers = ContractVerifierFactory(VerifierDeployer(config.chain_config))
    else:
        raise ValueError(f"Unknown backend: {backend}")

    logger.info(f"Using {backend} backend")
    return ScenarioRunner(
        evaluator=evaluator,
        backend=prover,
        verifiers=verifiers,
        check_idempotence=config.check_idempotence,
        verify_off_chain=config.verify_off_chain,
        monitor=monitor,
    )
