"""
Zero-knowledge proof artifacts and the snarkjs-backed prover.

Witness calculation, proof generation, off-chain verification and Solidity
calldata export are delegated to the circom/snarkjs Node toolchain. Each
command runs in its own temporary directory, off the event loop.
"""

import asyncio
import json
import logging
import subprocess
import tempfile
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence, Tuple, Type

from .errors import (
    BackendFailure,
    FormatError,
    MalformedProofError,
    MalformedWitnessError,
    ProofGenerationError,
    WitnessGenerationError,
)
from .field import FieldElement, equals, to_field_elements, to_uint256

if TYPE_CHECKING:
    from .circuits import CircuitConfig

logger = logging.getLogger(__name__)


class ProvingSystem(Enum):
    """Proving systems with an on-chain verifier"""
    GROTH16 = "groth16"
    PLONK = "plonk"


@dataclass
class ZKConfig:
    """snarkjs / Node toolchain configuration"""
    snarkjs_bin: str = "snarkjs"
    node_bin: str = "node"
    build_dir: Path = Path("contracts/circuits")
    command_timeout: int = 600

    def __post_init__(self):
        self.build_dir = Path(self.build_dir)


# ============================================================================
# WITNESS AND PROOF ARTIFACTS
# ============================================================================


@dataclass(frozen=True)
class Witness:
    """Full signal assignment: [1, public outputs..., private signals...]"""
    values: Tuple[FieldElement, ...]
    n_public: int

    @classmethod
    def from_values(cls, values: Sequence[Any], n_public: int) -> 'Witness':
        elements = tuple(to_field_elements(values))
        if not elements:
            raise MalformedWitnessError("Empty witness")
        if not equals(elements[0], 1):
            raise MalformedWitnessError(
                f"Witness[0] must be the constant 1, got {elements[0]}")
        if len(elements) < 1 + n_public:
            raise MalformedWitnessError(
                f"Witness has {len(elements)} signals, expected at least {1 + n_public}")
        return cls(values=elements, n_public=n_public)

    @property
    def public_signals(self) -> Tuple[FieldElement, ...]:
        return self.values[1:1 + self.n_public]

    def __getitem__(self, index: int) -> FieldElement:
        return self.values[index]

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class G1Point:
    """Affine point over the base field; coordinates are plain uint256 words"""
    x: int
    y: int


@dataclass(frozen=True)
class Fp2Element:
    """c0 + c1 * u"""
    c0: int
    c1: int


@dataclass(frozen=True)
class G2Point:
    x: Fp2Element
    y: Fp2Element


@dataclass(frozen=True)
class Groth16Proof:
    """Affine Groth16 proof points"""
    a: G1Point
    b: G2Point
    c: G1Point

    @classmethod
    def from_snarkjs(cls, proof: Mapping[str, Any]) -> 'Groth16Proof':
        """Build from snarkjs proof.json (projective coordinates with z = 1)"""
        protocol = proof.get('protocol', ProvingSystem.GROTH16.value)
        if protocol != ProvingSystem.GROTH16.value:
            raise MalformedProofError(f"Not a groth16 proof: {protocol}")

        try:
            pi_a, pi_b, pi_c = proof['pi_a'], proof['pi_b'], proof['pi_c']
            a = G1Point(to_uint256(pi_a[0]), to_uint256(pi_a[1]))
            b = G2Point(
                Fp2Element(to_uint256(pi_b[0][0]), to_uint256(pi_b[0][1])),
                Fp2Element(to_uint256(pi_b[1][0]), to_uint256(pi_b[1][1])),
            )
            c = G1Point(to_uint256(pi_c[0]), to_uint256(pi_c[1]))
        except (KeyError, IndexError, TypeError, FormatError) as e:
            raise MalformedProofError(f"Incomplete groth16 proof: {e!r}") from e

        return cls(a=a, b=b, c=c)

    def to_snarkjs(self) -> Dict[str, Any]:
        return {
            'pi_a': [str(self.a.x), str(self.a.y), "1"],
            'pi_b': [
                [str(self.b.x.c0), str(self.b.x.c1)],
                [str(self.b.y.c0), str(self.b.y.c1)],
                ["1", "0"],
            ],
            'pi_c': [str(self.c.x), str(self.c.y), "1"],
            'protocol': ProvingSystem.GROTH16.value,
            'curve': 'bn128',
        }


@dataclass
class ProofArtifact:
    """Container for proof and metadata"""
    proof: Dict[str, Any]
    public_signals: List[str]
    proving_system: ProvingSystem
    circuit_name: str
    generation_time: float = 0.0
    timestamp: float = field(default_factory=time.time)

    def public_field_elements(self) -> List[FieldElement]:
        return to_field_elements(self.public_signals)

    def groth16_proof(self) -> Groth16Proof:
        if self.proving_system is not ProvingSystem.GROTH16:
            raise MalformedProofError(
                f"{self.proving_system.value} proof has no groth16 points")
        return Groth16Proof.from_snarkjs(self.proof)


# ============================================================================
# SNARKJS BACKEND
# ============================================================================


class SnarkjsBackend:
    """Witness evaluator and prover backed by circom's wasm and snarkjs"""

    def __init__(self, config: Optional[ZKConfig] = None):
        self.config = config or ZKConfig()

    async def _exec(self, cmd: List[str], error_cls: Type[BackendFailure],
                    what: str) -> subprocess.CompletedProcess:
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            return await asyncio.to_thread(
                subprocess.run, cmd,
                capture_output=True, text=True,
                timeout=self.config.command_timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise error_cls(
                f"{what} timed out after {self.config.command_timeout}s") from e
        except OSError as e:
            raise error_cls(f"{what} could not start {cmd[0]}: {e}") from e

    async def _run(self, cmd: List[str], error_cls: Type[BackendFailure], what: str) -> str:
        result = await self._exec(cmd, error_cls, what)
        if result.returncode != 0:
            raise error_cls(f"{what} failed: {result.stderr.strip()}",
                            stderr=result.stderr)
        return result.stdout

    @staticmethod
    def _write_inputs(path: Path, inputs: Mapping[str, int]):
        with open(path, 'w') as f:
            json.dump({name: str(value) for name, value in inputs.items()}, f)

    async def calculate_witness(self, circuit: 'CircuitConfig',
                                inputs: Mapping[str, int]) -> Witness:
        bound = circuit.bind_inputs(inputs)

        with tempfile.TemporaryDirectory() as temp_dir:
            temp_path = Path(temp_dir)
            input_file = temp_path / "input.json"
            wtns_file = temp_path / "witness.wtns"
            json_file = temp_path / "witness.json"
            self._write_inputs(input_file, bound)

            await self._run([
                self.config.node_bin,
                str(circuit.witness_generator),
                str(circuit.wasm_file),
                str(input_file),
                str(wtns_file),
            ], WitnessGenerationError, "Witness generation")

            await self._run([
                self.config.snarkjs_bin, 'wtns', 'export', 'json',
                str(wtns_file), str(json_file),
            ], WitnessGenerationError, "Witness export")

            try:
                values = json.loads(json_file.read_text())
            except (OSError, ValueError) as e:
                raise WitnessGenerationError(f"Unreadable witness: {e}") from e

        witness = Witness.from_values(values, circuit.n_public)
        logger.debug(f"Witness for {circuit.name}: {[str(v) for v in witness.values]}")
        return witness

    async def full_prove(self, circuit: 'CircuitConfig',
                         inputs: Mapping[str, int]) -> ProofArtifact:
        bound = circuit.bind_inputs(inputs)
        system = circuit.proving_system
        start_time = time.time()

        with tempfile.TemporaryDirectory() as temp_dir:
            temp_path = Path(temp_dir)
            input_file = temp_path / "input.json"
            proof_file = temp_path / "proof.json"
            public_file = temp_path / "public.json"
            self._write_inputs(input_file, bound)

            await self._run([
                self.config.snarkjs_bin, system.value, 'fullprove',
                str(input_file),
                str(circuit.wasm_file),
                str(circuit.zkey_file),
                str(proof_file),
                str(public_file),
            ], ProofGenerationError, "Proof generation")

            try:
                proof = json.loads(proof_file.read_text())
                public_signals = json.loads(public_file.read_text())
            except (OSError, ValueError) as e:
                raise ProofGenerationError(f"Unreadable proof output: {e}") from e

        generation_time = time.time() - start_time
        logger.info(
            f"Generated {system.value} proof for {circuit.name} in {generation_time:.2f}s")

        return ProofArtifact(
            proof=proof,
            public_signals=[str(s) for s in public_signals],
            proving_system=system,
            circuit_name=circuit.name,
            generation_time=generation_time,
        )

    def _write_artifact(self, temp_path: Path, artifact: ProofArtifact) -> Tuple[Path, Path]:
        proof_file = temp_path / "proof.json"
        public_file = temp_path / "public.json"
        proof_file.write_text(json.dumps(artifact.proof))
        public_file.write_text(json.dumps(artifact.public_signals))
        return proof_file, public_file

    async def verify_off_chain(self, circuit: 'CircuitConfig', artifact: ProofArtifact) -> bool:
        """Verify with snarkjs against the circuit's verification key.

        Returns False only when snarkjs reports an invalid proof; any other
        failure of the command raises ProofGenerationError.
        """
        with tempfile.TemporaryDirectory() as temp_dir:
            proof_file, public_file = self._write_artifact(Path(temp_dir), artifact)
            result = await self._exec([
                self.config.snarkjs_bin, artifact.proving_system.value, 'verify',
                str(circuit.vkey_file), str(public_file), str(proof_file),
            ], ProofGenerationError, "Off-chain verification")

        if result.returncode == 0 and "OK" in result.stdout:
            is_valid = True
        elif "Invalid proof" in result.stdout + result.stderr:
            is_valid = False
        else:
            raise ProofGenerationError(
                f"Off-chain verification failed: {result.stderr.strip() or result.stdout.strip()}",
                stderr=result.stderr)

        logger.info(
            f"Off-chain {artifact.proving_system.value} verification of "
            f"{artifact.circuit_name}: {'valid' if is_valid else 'invalid'}")
        return is_valid

    async def export_calldata(self, artifact: ProofArtifact) -> str:
        """snarkjs' Solidity calldata string for this proof"""
        with tempfile.TemporaryDirectory() as temp_dir:
            proof_file, public_file = self._write_artifact(Path(temp_dir), artifact)
            stdout = await self._run([
                self.config.snarkjs_bin, 'zkey', 'export', 'soliditycalldata',
                str(public_file), str(proof_file),
            ], ProofGenerationError, "Calldata export")
        return stdout.strip()
