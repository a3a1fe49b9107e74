"""
Exception hierarchy for the proof lifecycle.

Every failure is raised where it happens and propagates unchanged to the
caller. Nothing here is retried: witness generation, proving and on-chain
verification are deterministic for fixed inputs.
"""

from typing import Optional


class ZKError(Exception):
    """Base exception for ZK operations"""
    pass


class FormatError(ZKError, ValueError):
    """A numeric string could not be parsed or encoded"""
    pass


class MalformedProofError(ZKError):
    """Proof material does not have the shape the verifier expects"""
    pass


class MalformedWitnessError(ZKError):
    """Witness values do not have the expected layout"""
    pass


class InputBindingError(ZKError, ValueError):
    """Input assignment does not match the circuit's declared inputs"""
    pass


class BackendFailure(ZKError):
    """A witness or proof collaborator reported failure"""

    def __init__(self, message: str, stderr: Optional[str] = None):
        super().__init__(message)
        self.stderr = stderr


class WitnessGenerationError(BackendFailure):
    """Witness calculation failed"""
    pass


class ProofGenerationError(BackendFailure):
    """Proof generation failed"""
    pass


class ChainError(ZKError):
    """Base exception for JSON-RPC / contract interaction"""
    pass


class VerificationCallFailure(ChainError):
    """The verification call errored instead of returning a boolean"""
    pass


class DeploymentError(ChainError):
    """Verifier contract could not be deployed"""
    pass


class PublicSignalMismatch(ZKError):
    """Public signals differ from the public portion of the witness"""
    pass


class ScenarioStateError(ZKError):
    """Illegal scenario state transition"""
    pass


class OutcomeMismatch(ZKError):
    """Verification outcome differs from the scenario's expectation"""
    pass


class ConfigError(ZKError):
    """Configuration file could not be read"""
    pass
