"""
Proof to verifier-calldata transcoding.

One transcoder per proving system. Each turns snarkjs output into the exact
positional arguments of the generated Solidity verifier's ``verifyProof``.

Groth16 verifiers take ``(uint256[2] a, uint256[2][2] b, uint256[2] c,
uint256[n] input)``. The EVM pairing precompile wants G2 coordinates with the
imaginary coefficient first, so ``b`` is ``[[x.c1, x.c0], [y.c1, y.c0]]``,
which is also the order snarkjs prints in its calldata export.

PLONK verifiers take ``(bytes proof, uint256[] pubSignals)``. snarkjs exports
``0x<proof>,[<signals>]``; the proof blob is the first comma segment.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .errors import FormatError, MalformedProofError
from .field import FieldElement, to_decimal_string, to_field_element, to_field_elements, to_uint256
from .zk_proofs import Groth16Proof, ProofArtifact, ProvingSystem

logger = logging.getLogger(__name__)

GROTH16_PROOF_WORDS = 8

_STRUCTURE_RE = re.compile(r'["\[\]\s]')
_HEX_BLOB_RE = re.compile(r'^0x(?:[0-9a-fA-F]{2})*$')

Signals = Sequence[Union[int, str, FieldElement]]


@dataclass(frozen=True)
class Groth16Calldata:
    # Proof coordinates live in the base field, so they are kept as raw uint256
    # words; only the public inputs are scalar field elements.
    a: Tuple[int, int]
    b: Tuple[Tuple[int, int], Tuple[int, int]]
    c: Tuple[int, int]
    inputs: Tuple[FieldElement, ...]

    proving_system = ProvingSystem.GROTH16

    @classmethod
    def zero(cls, n_inputs: int) -> 'Groth16Calldata':
        """All-zero proof points with an all-zero input vector"""
        return cls(a=(0, 0), b=((0, 0), (0, 0)), c=(0, 0), inputs=(FieldElement(0),) * n_inputs)

    def function_signature(self) -> str:
        return f"verifyProof(uint256[2],uint256[2][2],uint256[2],uint256[{len(self.inputs)}])"

    def as_args(self) -> Tuple[List[str], List[List[str]], List[str], List[str]]:
        return (
            [str(v) for v in self.a],
            [[str(v) for v in row] for row in self.b],
            [str(v) for v in self.c],
            [to_decimal_string(v) for v in self.inputs],
        )


@dataclass(frozen=True)
class PlonkCalldata:
    proof: str
    public_signals: Tuple[FieldElement, ...]

    proving_system = ProvingSystem.PLONK

    def __post_init__(self):
        if not isinstance(self.proof, str) or not _HEX_BLOB_RE.match(self.proof):
            raise MalformedProofError(
                "PLONK proof must be a 0x-prefixed, even-length hex string")

    @property
    def proof_bytes(self) -> bytes:
        return bytes.fromhex(self.proof[2:])

    def function_signature(self) -> str:
        return "verifyProof(bytes,uint256[])"

    def as_args(self) -> Tuple[str, List[str]]:
        return self.proof, [to_decimal_string(v) for v in self.public_signals]


Calldata = Union[Groth16Calldata, PlonkCalldata]


def flatten_calldata(calldata: str) -> List[str]:
    """Strip quotes, brackets and whitespace, then split on commas"""
    stripped = _STRUCTURE_RE.sub('', calldata)
    if not stripped:
        return []
    return stripped.split(',')


class Groth16Transcoder:
    proving_system = ProvingSystem.GROTH16

    def from_proof(self, proof: Groth16Proof, public_signals: Signals) -> Groth16Calldata:
        """Map named proof fields onto the verifier's argument slots"""
        return Groth16Calldata(
            a=(proof.a.x, proof.a.y),
            b=((proof.b.x.c1, proof.b.x.c0),
               (proof.b.y.c1, proof.b.y.c0)),
            c=(proof.c.x, proof.c.y),
            inputs=tuple(to_field_elements(public_signals)),
        )

    def from_artifact(self, artifact: ProofArtifact) -> Groth16Calldata:
        return self.from_proof(artifact.groth16_proof(), artifact.public_signals)

    def transcode(self, calldata: str, public_signals: Optional[Signals] = None) -> Groth16Calldata:
        """Partition snarkjs' exported calldata string"""
        words = flatten_calldata(calldata)
        if len(words) < GROTH16_PROOF_WORDS:
            raise MalformedProofError(
                f"Groth16 calldata has {len(words)} values, expected at least {GROTH16_PROOF_WORDS}")

        try:
            points = [to_uint256(w) for w in words[:GROTH16_PROOF_WORDS]]
        except FormatError as e:
            raise MalformedProofError(f"Groth16 proof word is not a uint256: {e}") from e
        inputs = tuple(to_field_elements(words[GROTH16_PROOF_WORDS:]))

        if public_signals is not None:
            expected = tuple(to_field_elements(public_signals))
            if expected != inputs:
                raise MalformedProofError(
                    f"Calldata inputs {[str(v) for v in inputs]} do not match "
                    f"public signals {[str(v) for v in expected]}")

        return Groth16Calldata(
            a=(points[0], points[1]),
            b=((points[2], points[3]), (points[4], points[5])),
            c=(points[6], points[7]),
            inputs=inputs,
        )


class PlonkTranscoder:
    proving_system = ProvingSystem.PLONK

    def transcode(self, calldata: str, public_signals: Optional[Signals] = None) -> PlonkCalldata:
        """Take the proof blob and pass the public signals through"""
        if public_signals is None:
            raise MalformedProofError("PLONK calldata needs the public signals passed separately")
        proof = calldata.split(',')[0].strip()
        return PlonkCalldata(
            proof=proof,
            public_signals=tuple(to_field_element(s) for s in public_signals),
        )


Transcoder = Union[Groth16Transcoder, PlonkTranscoder]

TRANSCODERS: Dict[ProvingSystem, Transcoder] = {
    ProvingSystem.GROTH16: Groth16Transcoder(),
    ProvingSystem.PLONK: PlonkTranscoder(),
}


def get_transcoder(proving_system: ProvingSystem) -> Transcoder:
    return TRANSCODERS[proving_system]


def transcode(proving_system: ProvingSystem, calldata: str,
              public_signals: Optional[Signals] = None) -> Calldata:
    logger.debug(f"Transcoding {proving_system.value} calldata ({len(calldata)} chars)")
    return get_transcoder(proving_system).transcode(calldata, public_signals)


# Fixed PLONK proof that is not valid for the public signal vector [0].
INVALID_PLONK_PROOF = (
    "0x2f8a36ec044ac2f6e0df858aa96855070ee81f7bfa0ce61cce082a0d3e09548224cd787dab59d6c4"
    "bee2fd5121eff8f9b6dd752eb30cb07f3bf7a3ffc6a42202103f1c9af02f8aec1110edcf7ca8f80ede"
    "e8d1948b69e9e9b73ea6a0bea0355f16efc96d3e75e1e9f13878e308b6ea545319703b37b88ddd9c88"
    "26c7bcd645e42d36dffa24b3d61841d139169ca38814d89d5495540df4b3b764e57060178be8183490"
    "7a6728af64b2dfc8af03cf11c2d2ed7010c32acdaa6ac02a6e4f02a8e916fb2298dddf8bd9c27e0dbb"
    "62effe84dd61e6101e7731573830b87e36baaa14240ef64a04eaa331ae33fb01c5af0edb53decc0e9c"
    "b01a7d4ba750d01cb71daa242fca3c59f4eeeb5eff7fb32597764374862abcbfc5c24644f72b3065ee"
    "b28a0c7c62866c6754ba703d3bdffddc4fa5e3cc15a8e9395d6174fd99d18c6f19381cb161e6ea096a"
    "8cd795a0066479ed1d626f7a696f42ce288c102c3c3d3dfe23265d53e61486a6895301cdaa7c14fc45"
    "505eb716ee4342918b1e6f0beed44d721acd077bd645ffdb940a9f9ff74edbd03c77d3894a6d4d73b1"
    "0edf01e84903de0bdf8f4fec72c836a3d5e6a0c6d4f9b5c682bc8f670ad5df99852b35c95b9c8f2c78"
    "365aafb51b045d46653d2b13eee564acdfe52561e39f1d22c7d4c600f77d2b6c15c04a2dc92a281f07"
    "13f526122dba6f148c94b732276bc28a5f774b1eaf1e9f13aa1c01619abf9b020b9c022cedcf6dfb6f"
    "b1db5e530e1b8c48fd46981501aa3261f76dd0d2a3c4b54c6d451edf1cc3571138d95aaf26a828c400"
    "c6dd6f29438ae480847aeaf4602faf2268c681467aa03a11c3b8a0ed917280be2c3257225ddc9dfe58"
    "6f3f6a0e42fc5a624e0b11f32eef5b072ed53dfafaf976f19f30267048e900102d775895a5c6f5aa91"
    "24222968c44a4383c010e47cff22dd5a211a8f033c40bfa120129650f6318c2164a93e1e2b18fd0763"
    "682f07aec21144c10dbbb87d5fc5cbe86308d91d42d61c8b76915be83b513d14434d8fb9f71a3e6715"
    "2f17bf61bf55927799db513e3eba58e8120a9d56288c749635f20b56052d23062941baed00d8168c72"
    "93f58ecfd73bd015aaafdd9eccbd2ac0832e9255a196"
)
