"""
Scenario harness: witness -> proof -> calldata -> on-chain verification
"""

from .interfaces import WitnessEvaluator, ProverBackend, Verifier, VerifierFactory
from .in_memory import InMemoryBackend, InMemoryVerifier, InMemoryVerifierFactory
from .scenario import (
    Expectation,
    Scenario,
    ScenarioResult,
    ScenarioRunner,
    ScenarioStage,
    ScenarioState,
    check_public_signals,
)
from .suite import ContractVerifierFactory, build_default_suite, build_runner

__all__ = [
    'WitnessEvaluator',
    'ProverBackend',
    'Verifier',
    'VerifierFactory',
    'InMemoryBackend',
    'InMemoryVerifier',
    'InMemoryVerifierFactory',
    'Expectation',
    'Scenario',
    'ScenarioResult',
    'ScenarioRunner',
    'ScenarioStage',
    'ScenarioState',
    'check_public_signals',
    'ContractVerifierFactory',
    'build_default_suite',
    'build_runner',
]
