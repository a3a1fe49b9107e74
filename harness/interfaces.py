"""
Capability interfaces for the external collaborators.

The scenario runner only sees these; the snarkjs/JSON-RPC implementations
and the in-memory test doubles both satisfy them.
"""

from abc import ABC, abstractmethod
from typing import Mapping

from zk.calldata import Calldata
from zk.circuits import CircuitConfig
from zk.zk_proofs import ProofArtifact, Witness


class WitnessEvaluator(ABC):

    @abstractmethod
    async def calculate_witness(self, circuit: CircuitConfig,
                                inputs: Mapping[str, int]) -> Witness:
        """Ordered signal values: [1, public outputs..., internals...]"""


class ProverBackend(ABC):

    @abstractmethod
    async def full_prove(self, circuit: CircuitConfig,
                         inputs: Mapping[str, int]) -> ProofArtifact:
        """Proof plus public signals for an input assignment"""

    @abstractmethod
    async def export_calldata(self, artifact: ProofArtifact) -> str:
        """Proving-system specific calldata string"""

    @abstractmethod
    async def verify_off_chain(self, circuit: CircuitConfig,
                               artifact: ProofArtifact) -> bool:
        pass


class Verifier(ABC):

    @abstractmethod
    async def verify(self, calldata: Calldata) -> bool:
        """True/False from the verifier; errors raise VerificationCallFailure"""


class VerifierFactory(ABC):

    @abstractmethod
    async def create(self, circuit: CircuitConfig) -> Verifier:
        """A verifier instance for the circuit, fresh per scenario"""
