"""
Deterministic in-memory stand-ins for snarkjs and the verifier contract.

Proof words are derived from a hash of (circuit, proving system, public
signals), so a verifier holding the same "setup" accepts exactly the proofs
the backend produced for those signals and rejects everything else. The
calldata export reproduces the snarkjs text format, including the G2
coordinate swap, so the real transcoders run unchanged against it.
"""

import hashlib
import json
import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

from zk.calldata import Calldata, Groth16Calldata, PlonkCalldata
from zk.circuits import CircuitConfig
from zk.errors import ProofGenerationError, VerificationCallFailure, WitnessGenerationError
from zk.field import PRIME, to_field_elements
from zk.zk_proofs import ProofArtifact, ProvingSystem, Witness

from .interfaces import ProverBackend, Verifier, VerifierFactory, WitnessEvaluator

logger = logging.getLogger(__name__)

PLONK_PROOF_WORDS = 25


def setup_tag(circuit: CircuitConfig) -> str:
    return f"{circuit.get_filename()}:{circuit.proving_system.value}"


def derive_proof_words(tag: str, public_signals: Sequence[Any], count: int) -> List[int]:
    signals = [str(v) for v in to_field_elements(public_signals)]
    seed = hashlib.sha256(json.dumps([tag, signals]).encode()).digest()
    return [
        int.from_bytes(hashlib.sha256(seed + i.to_bytes(4, 'big')).digest(), 'big') % PRIME
        for i in range(count)
    ]


def _hex_word(value: Any) -> str:
    return f'"0x{int(value):064x}"'


class InMemoryBackend(WitnessEvaluator, ProverBackend):
    """Witness evaluator and prover for the multiplier circuits"""

    def __init__(self, fail_on: Optional[Set[str]] = None):
        # Stage names to fail: 'witness', 'prove', 'export'
        self.fail_on = set(fail_on or ())
        self.calls: List[str] = []

    async def calculate_witness(self, circuit: CircuitConfig,
                                inputs: Mapping[str, int]) -> Witness:
        self.calls.append('witness')
        if 'witness' in self.fail_on:
            raise WitnessGenerationError(f"Witness generation failed for {circuit.name}",
                                         stderr="injected failure")

        bound = circuit.bind_inputs(inputs)
        values = list(bound.values())
        outputs = circuit.evaluate(bound)

        # Intermediate products of a chained multiplier
        internals = []
        acc = values[0] if values else 1
        for v in values[1:-1]:
            acc *= v
            internals.append(acc)

        return Witness.from_values([1, *outputs, *values, *internals], circuit.n_public)

    async def full_prove(self, circuit: CircuitConfig,
                         inputs: Mapping[str, int]) -> ProofArtifact:
        self.calls.append('prove')
        if 'prove' in self.fail_on:
            raise ProofGenerationError(f"Proof generation failed for {circuit.name}",
                                       stderr="injected failure")

        start_time = time.time()
        public_signals = [str(v) for v in to_field_elements(circuit.evaluate(inputs))]
        tag = setup_tag(circuit)

        if circuit.proving_system is ProvingSystem.GROTH16:
            w = [str(v) for v in derive_proof_words(tag, public_signals, 8)]
            proof: Dict[str, Any] = {
                'pi_a': [w[0], w[1], "1"],
                'pi_b': [[w[2], w[3]], [w[4], w[5]], ["1", "0"]],
                'pi_c': [w[6], w[7], "1"],
                'protocol': 'groth16',
                'curve': 'bn128',
            }
        else:
            words = derive_proof_words(tag, public_signals, PLONK_PROOF_WORDS)
            proof = {
                'protocol': 'plonk',
                'curve': 'bn128',
                'blob': ''.join(f"{v:064x}" for v in words),
            }

        return ProofArtifact(
            proof=proof,
            public_signals=public_signals,
            proving_system=circuit.proving_system,
            circuit_name=circuit.name,
            generation_time=time.time() - start_time,
        )

    async def export_calldata(self, artifact: ProofArtifact) -> str:
        self.calls.append('export')
        if 'export' in self.fail_on:
            raise ProofGenerationError("Calldata export failed", stderr="injected failure")

        signals = ','.join(_hex_word(s) for s in artifact.public_signals)
        if artifact.proving_system is ProvingSystem.PLONK:
            return f"0x{artifact.proof['blob']},[{signals}]"

        p = artifact.proof
        a = f"[{_hex_word(p['pi_a'][0])}, {_hex_word(p['pi_a'][1])}]"
        b = (f"[[{_hex_word(p['pi_b'][0][1])}, {_hex_word(p['pi_b'][0][0])}],"
             f"[{_hex_word(p['pi_b'][1][1])}, {_hex_word(p['pi_b'][1][0])}]]")
        c = f"[{_hex_word(p['pi_c'][0])}, {_hex_word(p['pi_c'][1])}]"
        return f"{a},{b},{c},[{signals}]"

    async def verify_off_chain(self, circuit: CircuitConfig,
                               artifact: ProofArtifact) -> bool:
        self.calls.append('verify_off_chain')
        tag = setup_tag(circuit)
        if artifact.proving_system is ProvingSystem.GROTH16:
            p = artifact.proof
            words = [p['pi_a'][0], p['pi_a'][1],
                     p['pi_b'][0][0], p['pi_b'][0][1], p['pi_b'][1][0], p['pi_b'][1][1],
                     p['pi_c'][0], p['pi_c'][1]]
            return [int(w) for w in words] == derive_proof_words(tag, artifact.public_signals, 8)
        words = derive_proof_words(tag, artifact.public_signals, PLONK_PROOF_WORDS)
        return artifact.proof.get('blob') == ''.join(f"{v:064x}" for v in words)


class InMemoryVerifier(Verifier):
    """Stateless verifier bound to one circuit's setup"""

    def __init__(self, circuit: CircuitConfig, fail_with: Optional[str] = None):
        self.tag = setup_tag(circuit)
        self.proving_system = circuit.proving_system
        self.fail_with = fail_with
        self.call_count = 0

    async def verify(self, calldata: Calldata) -> bool:
        self.call_count += 1
        if self.fail_with:
            raise VerificationCallFailure(self.fail_with)
        if calldata.proving_system is not self.proving_system:
            raise VerificationCallFailure(
                f"{calldata.proving_system.value} calldata sent to a "
                f"{self.proving_system.value} verifier")

        if isinstance(calldata, Groth16Calldata):
            expected = derive_proof_words(self.tag, calldata.inputs, 8)
            # Calldata carries G2 coordinates imaginary part first
            got = [calldata.a[0], calldata.a[1],
                   calldata.b[0][1], calldata.b[0][0],
                   calldata.b[1][1], calldata.b[1][0],
                   calldata.c[0], calldata.c[1]]
            outcome = got == expected
        elif isinstance(calldata, PlonkCalldata):
            words = derive_proof_words(self.tag, calldata.public_signals, PLONK_PROOF_WORDS)
            outcome = calldata.proof.lower() == '0x' + ''.join(f"{v:064x}" for v in words)
        else:
            raise VerificationCallFailure(f"Unsupported calldata {type(calldata).__name__}")

        logger.debug(f"In-memory {self.proving_system.value} verifier returned {outcome}")
        return outcome


class InMemoryVerifierFactory(VerifierFactory):

    def __init__(self, fail_with: Optional[str] = None):
        self.fail_with = fail_with
        self.created: List[InMemoryVerifier] = []

    async def create(self, circuit: CircuitConfig) -> InMemoryVerifier:
        verifier = InMemoryVerifier(circuit, fail_with=self.fail_with)
        self.created.append(verifier)
        return verifier
