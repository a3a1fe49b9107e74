"""
Pytest configuration for the proof lifecycle tests.
"""

import sys
from pathlib import Path

import pytest

# Make the top-level packages importable without installation
root_dir = Path(__file__).parent.parent
if str(root_dir) not in sys.path:
    sys.path.insert(0, str(root_dir))

from zk.circuits import default_circuits  # noqa: E402


@pytest.fixture
def circuits():
    return default_circuits()


@pytest.fixture
def hello(circuits):
    return circuits.get("HelloWorld")


@pytest.fixture
def mult3(circuits):
    return circuits.get("Multiplier3")


@pytest.fixture
def mult3_plonk(circuits):
    return circuits.get("Multiplier3_plonk")


def word(value: int) -> str:
    return f'"0x{value:064x}"'


@pytest.fixture
def groth16_export():
    """snarkjs-style groth16 calldata for a=(1,2), pi_b=((3,4),(5,6)), c=(7,8), input [6]"""
    return (f"[{word(1)}, {word(2)}],"
            f"[[{word(4)}, {word(3)}],[{word(6)}, {word(5)}]],"
            f"[{word(7)}, {word(8)}],"
            f"[{word(6)}]")


@pytest.fixture
def groth16_proof_json():
    return {
        'pi_a': ["1", "2", "1"],
        'pi_b': [["3", "4"], ["5", "6"], ["1", "0"]],
        'pi_c': ["7", "8", "1"],
        'protocol': 'groth16',
        'curve': 'bn128',
    }
