"""
Scenario state machine and outcome contract.

A scenario moves INPUTS_BOUND -> WITNESS_COMPUTED -> PROOF_GENERATED ->
CALLDATA_BUILT -> VERIFIED. Transitions only move forward; forged-calldata
scenarios jump from INPUTS_BOUND straight to CALLDATA_BUILT. Any error aborts
the scenario and propagates unchanged after being recorded.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from utils.utils import PerformanceMonitor
from zk.calldata import Calldata, Groth16Transcoder, get_transcoder
from zk.circuits import CircuitConfig
from zk.errors import (
    MalformedProofError,
    OutcomeMismatch,
    PublicSignalMismatch,
    ScenarioStateError,
    VerificationCallFailure,
    ZKError,
)
from zk.field import FieldElement, equals, to_field_elements
from zk.zk_proofs import ProofArtifact, Witness

from .interfaces import ProverBackend, VerifierFactory, WitnessEvaluator

logger = logging.getLogger(__name__)


class ScenarioStage(Enum):
    INPUTS_BOUND = 1
    WITNESS_COMPUTED = 2
    PROOF_GENERATED = 3
    CALLDATA_BUILT = 4
    VERIFIED = 5


class Expectation(Enum):
    ACCEPT = "accept"
    REJECT = "reject"

    @property
    def outcome(self) -> bool:
        return self is Expectation.ACCEPT


@dataclass
class Scenario:
    """One run through the proof lifecycle"""
    name: str
    circuit: CircuitConfig
    inputs: Dict[str, int] = field(default_factory=dict)
    expect: Expectation = Expectation.ACCEPT
    # Witness index -> expected value
    expected_witness: Dict[int, int] = field(default_factory=dict)
    # Skips witness and proof generation when set
    forged_calldata: Optional[Calldata] = None
    final_stage: ScenarioStage = ScenarioStage.VERIFIED

    def __post_init__(self):
        if self.forged_calldata is not None and self.final_stage in (
                ScenarioStage.WITNESS_COMPUTED, ScenarioStage.PROOF_GENERATED):
            raise ValueError(f"{self.name}: forged scenarios end at verification")


class ScenarioState:
    """One-way stage tracker"""

    def __init__(self, name: str):
        self.name = name
        self.stage = ScenarioStage.INPUTS_BOUND
        self.history: List[ScenarioStage] = [self.stage]

    def advance(self, stage: ScenarioStage):
        if stage.value <= self.stage.value:
            raise ScenarioStateError(
                f"{self.name}: cannot move from {self.stage.name} to {stage.name}")
        logger.debug(f"{self.name}: {self.stage.name} -> {stage.name}")
        self.stage = stage
        self.history.append(stage)


@dataclass
class ScenarioResult:
    name: str
    passed: bool
    stage: ScenarioStage
    expected: Optional[bool] = None
    outcome: Optional[bool] = None
    witness: Optional[List[str]] = None
    public_signals: Optional[List[str]] = None
    calldata_args: Optional[Tuple[Any, ...]] = None
    timings: Dict[str, float] = field(default_factory=dict)
    error: Optional[str] = None
    error_type: Optional[str] = None


class ScenarioRunner:
    """Drives scenarios against capability-typed collaborators"""

    def __init__(self, evaluator: WitnessEvaluator, backend: ProverBackend,
                 verifiers: VerifierFactory,
                 check_idempotence: bool = True,
                 verify_off_chain: bool = False,
                 monitor: Optional[PerformanceMonitor] = None):
        self.evaluator = evaluator
        self.backend = backend
        self.verifiers = verifiers
        self.check_idempotence = check_idempotence
        self.verify_off_chain = verify_off_chain
        self.monitor = monitor or PerformanceMonitor()
        self.results: List[ScenarioResult] = []

    async def run(self, scenario: Scenario) -> ScenarioResult:
        """Run one scenario; errors are recorded on the result and re-raised"""
        state = ScenarioState(scenario.name)
        result = ScenarioResult(name=scenario.name, passed=False, stage=state.stage,
                                expected=scenario.expect.outcome)
        self.results.append(result)
        logger.info(f"Scenario {scenario.name}: {scenario.circuit.name} "
                    f"({scenario.circuit.proving_system.value}) expecting {scenario.expect.value}")
        try:
            await self._run_stages(scenario, state, result)
        except ZKError as e:
            result.stage = state.stage
            result.error = str(e)
            result.error_type = type(e).__name__
            logger.error(f"Scenario {scenario.name} aborted after {state.stage.name}: {e}")
            raise

        result.stage = state.stage
        result.passed = True
        logger.info(f"Scenario {scenario.name} passed at {state.stage.name}")
        return result

    async def run_all(self, scenarios: List[Scenario]) -> Dict[str, Any]:
        """Run scenarios one at a time, collecting failures instead of stopping"""
        results: List[ScenarioResult] = []
        for scenario in scenarios:
            try:
                await self.run(scenario)
            except ZKError:
                pass  # recorded on the result by run()
            results.append(self.results[-1])

        passed = sum(1 for r in results if r.passed)
        return {
            'results': results,
            'passed': passed,
            'failed': len(results) - passed,
            'total': len(results),
            'all_passed': passed == len(results),
        }

    async def _run_stages(self, scenario: Scenario, state: ScenarioState, result: ScenarioResult):
        circuit = scenario.circuit

        if scenario.forged_calldata is not None:
            calldata = scenario.forged_calldata
            state.advance(ScenarioStage.CALLDATA_BUILT)
            result.calldata_args = calldata.as_args()
            await self._verify(scenario, calldata, state, result)
            return

        bound = circuit.bind_inputs(scenario.inputs)

        with self.monitor.start_operation(f"{scenario.name}:witness") as op:
            witness = await self.evaluator.calculate_witness(circuit, bound)
        result.timings['witness'] = op.duration
        state.advance(ScenarioStage.WITNESS_COMPUTED)
        result.witness = [str(v) for v in witness.values]
        self._check_witness(scenario, witness)
        if scenario.final_stage is ScenarioStage.WITNESS_COMPUTED:
            return

        with self.monitor.start_operation(f"{scenario.name}:prove") as op:
            artifact = await self.backend.full_prove(circuit, bound)
        result.timings['prove'] = op.duration
        state.advance(ScenarioStage.PROOF_GENERATED)
        result.public_signals = list(artifact.public_signals)
        check_public_signals(witness, artifact)
        self._log_product(bound, artifact)

        if self.verify_off_chain:
            if not await self.backend.verify_off_chain(circuit, artifact):
                raise OutcomeMismatch(f"{scenario.name}: off-chain verification rejected the proof")
        if scenario.final_stage is ScenarioStage.PROOF_GENERATED:
            return

        with self.monitor.start_operation(f"{scenario.name}:calldata") as op:
            calldata = await self.build_calldata(artifact)
        result.timings['calldata'] = op.duration
        state.advance(ScenarioStage.CALLDATA_BUILT)
        result.calldata_args = calldata.as_args()
        if scenario.final_stage is ScenarioStage.CALLDATA_BUILT:
            return

        await self._verify(scenario, calldata, state, result)

    async def build_calldata(self, artifact: ProofArtifact) -> Calldata:
        exported = await self.backend.export_calldata(artifact)
        transcoder = get_transcoder(artifact.proving_system)
        calldata = transcoder.transcode(exported, artifact.public_signals)

        if isinstance(transcoder, Groth16Transcoder):
            # The named-field mapping must agree with the exported layout
            mapped = transcoder.from_artifact(artifact)
            if mapped != calldata:
                raise MalformedProofError(
                    f"Exported calldata for {artifact.circuit_name} disagrees with the proof")
        return calldata

    async def _verify(self, scenario: Scenario, calldata: Calldata,
                      state: ScenarioState, result: ScenarioResult):
        verifier = await self.verifiers.create(scenario.circuit)

        with self.monitor.start_operation(f"{scenario.name}:verify") as op:
            outcome = await verifier.verify(calldata)
            if self.check_idempotence:
                repeat = await verifier.verify(calldata)
                if repeat != outcome:
                    raise VerificationCallFailure(
                        f"{scenario.name}: verifier returned {outcome} then {repeat} "
                        f"for identical calldata")
        result.timings['verify'] = op.duration
        state.advance(ScenarioStage.VERIFIED)

        result.expected = scenario.expect.outcome
        result.outcome = outcome
        if outcome != scenario.expect.outcome:
            raise OutcomeMismatch(
                f"{scenario.name}: verifier returned {outcome}, expected {scenario.expect.outcome}")

    def _check_witness(self, scenario: Scenario, witness: Witness):
        logger.info(f"{scenario.name}: witness {[str(v) for v in witness.values]}")
        for index, value in scenario.expected_witness.items():
            if index >= len(witness) or not equals(witness[index], value):
                got = witness[index] if index < len(witness) else None
                raise OutcomeMismatch(
                    f"{scenario.name}: witness[{index}] is {got}, expected {value}")

    @staticmethod
    def _log_product(inputs: Mapping[str, int], artifact: ProofArtifact):
        expression = 'x'.join(str(v) for v in inputs.values())
        logger.info(f"{expression} = {artifact.public_signals[0] if artifact.public_signals else '?'}")


def check_public_signals(witness: Witness, artifact: ProofArtifact):
    """Proof public signals must equal the witness' public portion, in order"""
    signals: List[FieldElement] = to_field_elements(artifact.public_signals)
    expected = list(witness.public_signals)
    if signals != expected:
        raise PublicSignalMismatch(
            f"{artifact.circuit_name}: public signals {[str(s) for s in signals]} "
            f"differ from witness outputs {[str(s) for s in expected]}")
