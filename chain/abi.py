"""
Contract ABI encoding for the verifier entry points.

Only the types the two ``verifyProof`` signatures use are supported:
static ``uint256`` arrays, dynamic ``bytes`` and dynamic ``uint256[]``.
"""

from typing import Any, List, Sequence

from Crypto.Hash import keccak

from zk.calldata import Calldata, Groth16Calldata, PlonkCalldata
from zk.errors import FormatError, VerificationCallFailure
from zk.field import to_uint256

WORD_SIZE = 32


def keccak_256(data: bytes) -> bytes:
    h = keccak.new(digest_bits=256)
    h.update(data)
    return h.digest()


def function_selector(signature: str) -> bytes:
    """First four bytes of keccak256 of the canonical signature"""
    return keccak_256(signature.encode('ascii'))[:4]


def encode_uint256(value: Any) -> bytes:
    return to_uint256(value).to_bytes(WORD_SIZE, 'big')


def encode_static_array(values: Sequence[Any]) -> bytes:
    return b''.join(encode_uint256(v) for v in values)


def _pad_right(data: bytes) -> bytes:
    remainder = len(data) % WORD_SIZE
    if remainder:
        data += b'\x00' * (WORD_SIZE - remainder)
    return data


def encode_bytes(data: bytes) -> bytes:
    """Dynamic bytes tail: length word then right-padded data"""
    return encode_uint256(len(data)) + _pad_right(data)


def encode_dynamic_uint_array(values: Sequence[Any]) -> bytes:
    return encode_uint256(len(values)) + encode_static_array(values)


def encode_groth16_call(calldata: Groth16Calldata) -> bytes:
    # Every argument is a fixed-size array, so they are laid out inline
    a, b, c, inputs = calldata.as_args()
    flat_b: List[str] = [b[0][0], b[0][1], b[1][0], b[1][1]]
    return (function_selector(calldata.function_signature())
            + encode_static_array(a)
            + encode_static_array(flat_b)
            + encode_static_array(c)
            + encode_static_array(inputs))


def encode_plonk_call(calldata: PlonkCalldata) -> bytes:
    _, signals = calldata.as_args()
    proof_tail = encode_bytes(calldata.proof_bytes)
    signals_tail = encode_dynamic_uint_array(signals)
    head = encode_uint256(2 * WORD_SIZE) + encode_uint256(2 * WORD_SIZE + len(proof_tail))
    return function_selector(calldata.function_signature()) + head + proof_tail + signals_tail


def encode_verify_call(calldata: Calldata) -> bytes:
    if isinstance(calldata, Groth16Calldata):
        return encode_groth16_call(calldata)
    if isinstance(calldata, PlonkCalldata):
        return encode_plonk_call(calldata)
    raise FormatError(f"No ABI encoding for {type(calldata).__name__}")


def decode_bool(result: str) -> bool:
    """Decode an eth_call result holding a single ABI bool"""
    if not isinstance(result, str) or not result.startswith('0x'):
        raise VerificationCallFailure(f"Unexpected call result: {result!r}")

    payload = result[2:]
    if len(payload) == 0:
        raise VerificationCallFailure("Call returned no data (no contract at address?)")
    if len(payload) != 2 * WORD_SIZE:
        raise VerificationCallFailure(
            f"Expected one 32-byte word, got {len(payload) // 2} bytes")

    try:
        word = int(payload, 16)
    except ValueError as e:
        raise VerificationCallFailure(f"Non-hex call result: {result!r}") from e

    if word not in (0, 1):
        raise VerificationCallFailure(f"Result is not an ABI bool: {word:#x}")
    return word == 1
