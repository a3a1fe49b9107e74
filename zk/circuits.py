"""
Circuit registry.

Compiled circuits, proving keys and verifier contracts are produced by the
circom/snarkjs/Hardhat toolchain; this module only knows where they live and
what the circuits compute.
"""

from dataclasses import dataclass, field
from functools import reduce as fold
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from .errors import InputBindingError
from .zk_proofs import ProvingSystem


@dataclass
class CircuitConfig:
    """Configuration for a specific circuit"""
    name: str
    proving_system: ProvingSystem
    input_names: Tuple[str, ...]
    n_public: int
    verifier_contract: str
    build_dir: Path
    # Directory name under the circuits dir when it differs from the circuit name
    build_name: Optional[str] = None

    def get_filename(self) -> str:
        """Get standardized filename"""
        return self.build_name or self.name

    @property
    def circuit_dir(self) -> Path:
        return Path(self.build_dir) / self.get_filename()

    @property
    def wasm_file(self) -> Path:
        return self.circuit_dir / f"{self.name}_js" / f"{self.name}.wasm"

    @property
    def witness_generator(self) -> Path:
        return self.circuit_dir / f"{self.name}_js" / "generate_witness.js"

    @property
    def zkey_file(self) -> Path:
        return self.circuit_dir / "circuit_final.zkey"

    @property
    def vkey_file(self) -> Path:
        return self.circuit_dir / "verification_key.json"

    def bind_inputs(self, inputs: Mapping[str, int]) -> Dict[str, int]:
        """Validate an input assignment against the declared inputs"""
        missing = [n for n in self.input_names if n not in inputs]
        extra = [n for n in inputs if n not in self.input_names]
        if missing or extra:
            raise InputBindingError(
                f"Inputs for {self.name} must be exactly {list(self.input_names)}"
                f" (missing={missing}, unexpected={extra})")
        try:
            return {n: int(inputs[n]) for n in self.input_names}
        except (TypeError, ValueError) as e:
            raise InputBindingError(f"Inputs for {self.name} must be integers: {e}") from e

    def evaluate(self, inputs: Mapping[str, int]) -> List[int]:
        """Reference evaluation of the circuit's public outputs.

        Every registered circuit is a multiplier: the single public output is
        the product of all inputs.
        """
        bound = self.bind_inputs(inputs)
        return [fold(lambda acc, v: acc * v, bound.values(), 1)]


@dataclass
class CircuitRegistry:
    circuits: Dict[str, CircuitConfig] = field(default_factory=dict)

    def register(self, circuit: CircuitConfig, key: Optional[str] = None) -> CircuitConfig:
        self.circuits[key or circuit.get_filename()] = circuit
        return circuit

    def get(self, key: str) -> CircuitConfig:
        try:
            return self.circuits[key]
        except KeyError:
            raise KeyError(
                f"Unknown circuit {key!r}; known: {sorted(self.circuits)}") from None

    def __iter__(self):
        return iter(self.circuits.values())

    def __len__(self) -> int:
        return len(self.circuits)


def default_circuits(build_dir: Path = Path("contracts/circuits")) -> CircuitRegistry:
    """The two-input multiplier and the three-input multiplier under both systems"""
    registry = CircuitRegistry()
    registry.register(CircuitConfig(
        name="HelloWorld",
        proving_system=ProvingSystem.GROTH16,
        input_names=("a", "b"),
        n_public=1,
        verifier_contract="HelloWorldVerifier",
        build_dir=build_dir,
    ))
    registry.register(CircuitConfig(
        name="Multiplier3",
        proving_system=ProvingSystem.GROTH16,
        input_names=("a", "b", "c"),
        n_public=1,
        verifier_contract="Verifier",
        build_dir=build_dir,
    ))
    registry.register(CircuitConfig(
        name="Multiplier3",
        proving_system=ProvingSystem.PLONK,
        input_names=("a", "b", "c"),
        n_public=1,
        verifier_contract="PlonkVerifier",
        build_dir=build_dir,
        build_name="Multiplier3_plonk",
    ))
    return registry
