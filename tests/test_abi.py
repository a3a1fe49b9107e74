"""
Tests for verifyProof ABI encoding and result decoding.
"""

import pytest

from chain.abi import (
    WORD_SIZE,
    decode_bool,
    encode_bytes,
    encode_plonk_call,
    encode_uint256,
    encode_verify_call,
    function_selector,
    keccak_256,
)
from zk.calldata import INVALID_PLONK_PROOF, Groth16Calldata, Groth16Transcoder, PlonkCalldata
from zk.errors import FormatError, VerificationCallFailure
from zk.field import FieldElement


def words(data: bytes):
    return [int.from_bytes(data[i:i + WORD_SIZE], 'big') for i in range(0, len(data), WORD_SIZE)]


class TestKeccak:

    def test_empty_input(self):
        assert keccak_256(b'').hex() == \
            "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"

    def test_known_selector(self):
        assert function_selector("transfer(address,uint256)").hex() == "a9059cbb"


class TestEncoding:

    def test_uint256_is_big_endian_word(self):
        assert encode_uint256(1) == b'\x00' * 31 + b'\x01'
        assert encode_uint256("0x1e") == encode_uint256(30)

    def test_uint256_out_of_range(self):
        with pytest.raises(FormatError):
            encode_uint256(2 ** 256)

    def test_bytes_are_right_padded(self):
        encoded = encode_bytes(b'\x12\x34')
        assert len(encoded) == 2 * WORD_SIZE
        assert words(encoded)[0] == 2
        assert encoded[WORD_SIZE:WORD_SIZE + 2] == b'\x12\x34'
        assert encoded[WORD_SIZE + 2:] == b'\x00' * 30

    def test_groth16_arguments_are_inline(self, groth16_export):
        calldata = Groth16Transcoder().transcode(groth16_export)
        encoded = encode_verify_call(calldata)

        assert encoded[:4] == function_selector(
            "verifyProof(uint256[2],uint256[2][2],uint256[2],uint256[1])")
        # a, b row-major, c, input
        assert words(encoded[4:]) == [1, 2, 4, 3, 6, 5, 7, 8, 6]

    def test_groth16_zero_fixture(self):
        encoded = encode_verify_call(Groth16Calldata.zero(1))
        assert len(encoded) == 4 + 9 * WORD_SIZE
        assert encoded[4:] == b'\x00' * (9 * WORD_SIZE)

    def test_plonk_dynamic_layout(self):
        calldata = PlonkCalldata(proof="0x1234", public_signals=(FieldElement(30),))
        encoded = encode_plonk_call(calldata)

        assert encoded[:4] == function_selector("verifyProof(bytes,uint256[])")
        body = words(encoded[4:])
        # head: offset of bytes, offset of array
        assert body[0] == 0x40
        assert body[1] == 0x40 + 2 * WORD_SIZE
        # bytes: length then one padded word
        assert body[2] == 2
        assert encoded[4 + 3 * WORD_SIZE:4 + 3 * WORD_SIZE + 2] == b'\x12\x34'
        # array: length then elements
        assert body[4:] == [1, 30]

    def test_plonk_full_size_proof(self):
        calldata = PlonkCalldata(proof=INVALID_PLONK_PROOF, public_signals=(FieldElement(0),))
        encoded = encode_verify_call(calldata)

        body = words(encoded[4:])
        assert body[1] == 0x40 + WORD_SIZE + 800
        assert len(encoded) == 4 + 2 * WORD_SIZE + WORD_SIZE + 800 + 2 * WORD_SIZE

    def test_unknown_calldata(self):
        with pytest.raises(FormatError):
            encode_verify_call(object())


class TestDecodeBool:

    def test_true_and_false(self):
        assert decode_bool('0x' + '0' * 63 + '1') is True
        assert decode_bool('0x' + '0' * 64) is False

    @pytest.mark.parametrize("result", [
        '0x',
        '0x01',
        '0x' + '0' * 63 + '2',
        '0x' + '0' * 128,
        'deadbeef',
        None,
    ])
    def test_anything_else_is_a_call_failure(self, result):
        with pytest.raises(VerificationCallFailure):
            decode_bool(result)
