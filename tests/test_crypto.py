import pytest

from trawler.errors import CipherError, EncodingError, MalformedInputError
from trawler.toolkit import (
    AES_CBC, AES_ECB, AES_GCM, RC4, CipherRecipe, SchedulePipeline, b64decode, b64url_encode,
    chain, decrypt_openssl_salted, derive_key, evp_bytes_to_key, hex_decode,
    schedule_transform, stream_cipher_apply, symmetric_decrypt, symmetric_encrypt, utf8,
)
from trawler.toolkit.schedule import parse_op

KEY16 = bytes.fromhex("000102030405060708090a0b0c0d0e0f")
IV16 = bytes.fromhex("101112131415161718191a1b1c1d1e1f")


# ──────────────────────────────
#  Ciphers
# ──────────────────────────────
def test_aes_cbc_known_vector():
    ct = bytes.fromhex("58cf59e266bd6943100a931949c8f1d0")
    assert symmetric_decrypt(AES_CBC, KEY16, IV16, ct) == b"hello trawler"
    assert symmetric_encrypt(AES_CBC, KEY16, IV16, b"hello trawler") == ct


def test_aes_ecb_known_vector():
    ct = bytes.fromhex("842442e7728a5f0d65e018d5d5af2dc0")
    assert symmetric_decrypt(AES_ECB, KEY16, None, ct) == b"hello trawler"


def test_aes_gcm_known_vector():
    """Check if GCM accepts ciphertext with the tag appended"""
    key, nonce = bytes([7]) * 32, bytes([1]) * 12
    ct = bytes.fromhex("1e84e5dbff9f987cb0a3b0440224ca64bb1cf4bab3c033a6c1c7ac6392")
    assert symmetric_decrypt(AES_GCM, key, nonce, ct) == b"hello trawler"


def test_aes_gcm_tampered():
    key, nonce = bytes([7]) * 32, bytes([1]) * 12
    ct = bytearray(bytes.fromhex("1e84e5dbff9f987cb0a3b0440224ca64bb1cf4bab3c033a6c1c7ac6392"))
    ct[-1] ^= 1
    with pytest.raises(CipherError):
        symmetric_decrypt(AES_GCM, key, nonce, bytes(ct))


def test_bad_key_length():
    with pytest.raises(CipherError):
        symmetric_decrypt(AES_CBC, b"short", IV16, bytes(16))


def test_bad_iv_length():
    with pytest.raises(CipherError):
        symmetric_decrypt(AES_CBC, KEY16, b"\x00" * 8, bytes(16))


def test_ciphertext_not_block_aligned():
    with pytest.raises(CipherError):
        symmetric_decrypt(AES_CBC, KEY16, IV16, bytes(15))


def test_bad_padding():
    """Check if a block ending in a zero byte is refused as padding"""
    block = b"fifteen bytes..\x00"
    ct = symmetric_encrypt(AES_ECB, KEY16, None, block)[:16]
    with pytest.raises(CipherError):
        symmetric_decrypt(AES_ECB, KEY16, None, ct)


def test_rc4_known_vector():
    assert stream_cipher_apply(b"Key", b"Plaintext").hex() == "bbf316e8d940af0ad3"


def test_rc4_is_an_involution():
    data = bytes(range(256)) * 3
    key = b"an arbitrary length key, not a block size"
    assert stream_cipher_apply(key, stream_cipher_apply(key, data)) == data
    assert symmetric_decrypt(RC4, key, None, symmetric_encrypt(RC4, key, None, data)) == data


def test_rc4_empty_key():
    with pytest.raises(CipherError):
        stream_cipher_apply(b"", b"data")


def test_chain_runs_recipes_in_order():
    inner = symmetric_encrypt(AES_CBC, KEY16, IV16, b"payload")
    outer = symmetric_encrypt(AES_ECB, bytes(32), None, inner)
    recipes = [CipherRecipe(AES_ECB, bytes(32)), CipherRecipe(AES_CBC, KEY16, IV16)]
    assert chain(recipes, outer) == b"payload"


def test_recipe_iterations():
    assert CipherRecipe(RC4, b"k", iterations=2).decrypt(b"same") == b"same"


# ──────────────────────────────
#  Key derivation
# ──────────────────────────────
def test_pbkdf2_vectors():
    assert derive_key("password", b"salt", 1, 32).hex() == (
        "120fb6cffcf8b32c43e7225256c4f837a86548c92ccc35480805987cb70be17b")
    assert derive_key("password", b"salt", 1, 20, hash_name="sha1").hex() == (
        "0c60c80f961f0e71f3a9b524af6012062fe037a6")


def test_evp_bytes_to_key_vector():
    """Check if EVP_BytesToKey(MD5) matches what CryptoJS derives"""
    key, iv = evp_bytes_to_key("6iDurMc2lRAyGUEHPIIt", bytes.fromhex("81b7eb2dfc27ceae"))
    assert key.hex() == "782dc3224e0ee7ea43c03e76eb2d61e93256ce4b941fb401482b907b52e9c1b2"
    assert iv.hex() == "3ecccda2bd918812aae56ced1d562f33"


def test_derive_key_rejects_bad_arguments():
    with pytest.raises(CipherError):
        derive_key("pw", b"salt", 0, 32)
    with pytest.raises(CipherError):
        derive_key("pw", b"salt", 1, 0)
    with pytest.raises(CipherError):
        derive_key("pw", b"salt", 1, 32, method="scrypt")
    with pytest.raises(CipherError):
        derive_key("pw", b"salt", 1, 32, hash_name="whirlpool-ish")


def test_openssl_salted_envelope():
    blob = b64decode(
        "U2FsdGVkX18BAgMEBQYHCEodf5vwDIxMZI8wsQmUzyTvQKbmSz+pJftDiJnWn0gE0vjoVvk1O++k"
        "F3HxqbXPw+xdHq6QmYCW/v+iADmIneA=")
    assert utf8(decrypt_openssl_salted("secret", blob)) == (
        '[{"file":"https://cdn.example/master.m3u8","type":"hls"}]')


def test_openssl_salted_missing_header():
    with pytest.raises(CipherError):
        decrypt_openssl_salted("secret", b"NotSalted" + bytes(32))


# ──────────────────────────────
#  Encodings
# ──────────────────────────────
def test_b64_variants():
    assert b64decode("aGk") == b"hi"
    assert b64decode("aGk=") == b"hi"
    assert b64decode("-_8") == b"\xfb\xff"
    assert b64url_encode(b"\xfb\xff") == "-_8"


def test_encoding_errors():
    with pytest.raises(EncodingError):
        b64decode("!!!!")
    with pytest.raises(EncodingError):
        hex_decode("zz")
    with pytest.raises(EncodingError):
        utf8(b"\xff\xfe")


# ──────────────────────────────
#  Schedule transforms
# ──────────────────────────────
def test_parse_op():
    assert parse_op("add:19")(250) == 13
    assert parse_op("sub:223")(0) == 33
    assert parse_op("xor:255")(0x0F) == 0xF0
    assert parse_op("rotl:1")(0x81) == 0x03
    assert parse_op("rotr:1")(0x03) == 0x81
    with pytest.raises(MalformedInputError):
        parse_op("mul:2")
    with pytest.raises(MalformedInputError):
        parse_op("add")


def test_schedule_transform_emits_prefix():
    out = schedule_transform(b"\x01\x02\x03", b"\x00", b"\xaa", ["add:1"])
    assert out == b"\xaa\x02\x03\x04"


def test_schedule_transform_needs_seed():
    with pytest.raises(MalformedInputError):
        schedule_transform(b"abc", b"", b"", ["add:1"])


def test_mangafire_pipeline():
    """Check if the bundled vrf table reproduces a known token"""
    pipeline = SchedulePipeline.load("mangafire_vrf")
    assert pipeline.encode("67890@ The quick brown fox jumps over the lazy dog @12345") == (
        "5fcaUfZo7rW1-Z3vTEvXO5sJBfP2zuTM2NIVmftpuGhYgy8c-Yl92uQOuxzYksgVMUWKu7h-Pt5_6c0KZ2c1"
        "BpRQwVCIkRycge1pensQ__YViJZddxqB5PvElml6UdQ1h4w8kCFftPUYNoSHTqNBX0HfFg")


def test_pipeline_table_errors():
    with pytest.raises(MalformedInputError):
        SchedulePipeline.from_dict({"stages": []})
    with pytest.raises(MalformedInputError):
        SchedulePipeline.from_dict({"stages": [{"rc4_key": "AA=="}]})
