"""
Zero-Knowledge Proof Module
Field codec, snarkjs prover backend and verifier calldata transcoding
"""

from .errors import (
    ZKError,
    FormatError,
    MalformedProofError,
    MalformedWitnessError,
    InputBindingError,
    BackendFailure,
    WitnessGenerationError,
    ProofGenerationError,
    ChainError,
    VerificationCallFailure,
    DeploymentError,
    PublicSignalMismatch,
    ScenarioStateError,
    OutcomeMismatch,
    ConfigError,
)
from .field import PRIME, FieldElement, reduce, equals, to_decimal_string, from_decimal_string
from .zk_proofs import (
    ProvingSystem,
    ZKConfig,
    Witness,
    Groth16Proof,
    ProofArtifact,
    SnarkjsBackend,
)
from .circuits import CircuitConfig, CircuitRegistry, default_circuits
from .calldata import (
    Groth16Calldata,
    PlonkCalldata,
    Groth16Transcoder,
    PlonkTranscoder,
    get_transcoder,
    transcode,
    INVALID_PLONK_PROOF,
)

__version__ = "1.0.0"

__all__ = [
    # Field
    'PRIME',
    'FieldElement',
    'reduce',
    'equals',
    'to_decimal_string',
    'from_decimal_string',

    # Proofs
    'ProvingSystem',
    'ZKConfig',
    'Witness',
    'Groth16Proof',
    'ProofArtifact',
    'SnarkjsBackend',
    'CircuitConfig',
    'CircuitRegistry',
    'default_circuits',

    # Calldata
    'Groth16Calldata',
    'PlonkCalldata',
    'Groth16Transcoder',
    'PlonkTranscoder',
    'get_transcoder',
    'transcode',
    'INVALID_PLONK_PROOF',

    # Exceptions
    'ZKError',
    'FormatError',
    'MalformedProofError',
    'MalformedWitnessError',
    'InputBindingError',
    'BackendFailure',
    'WitnessGenerationError',
    'ProofGenerationError',
    'ChainError',
    'VerificationCallFailure',
    'DeploymentError',
    'PublicSignalMismatch',
    'ScenarioStateError',
    'OutcomeMismatch',
    'ConfigError',
]
