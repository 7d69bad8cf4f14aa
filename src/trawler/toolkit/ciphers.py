"""
Block and stream ciphers.

AES goes through `cryptography`; RC4 is small enough to keep inline and
has to accept keys of any length, which most providers rely on.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import padding as sym_padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..errors import CipherError

AES_CBC = "aes-cbc"
AES_GCM = "aes-gcm"
AES_ECB = "aes-ecb"
RC4 = "rc4"

_KEY_SIZES = (16, 24, 32)


def _check_key(key: bytes):
    if len(key) not in _KEY_SIZES:
        raise CipherError(f"AES key must be 16/24/32 bytes, got {len(key)}")


def _block_mode(algorithm: str, iv: bytes | None):
    if algorithm == AES_CBC:
        if iv is None or len(iv) != 16:
            raise CipherError(f"AES-CBC iv must be 16 bytes, got {0 if iv is None else len(iv)}")
        return modes.CBC(iv)
    if algorithm == AES_ECB:
        return modes.ECB()
    raise CipherError(f"unsupported block algorithm: {algorithm}")


def symmetric_decrypt(algorithm: str, key: bytes, iv: bytes | None, ciphertext: bytes) -> bytes:
    """
    Decrypt `ciphertext`.

    CBC and ECB strip PKCS7 padding; GCM expects the 16-byte tag appended to
    the ciphertext (the WebCrypto / RustCrypto layout).
    """
    if algorithm == RC4:
        return stream_cipher_apply(key, ciphertext)
    _check_key(key)

    if algorithm == AES_GCM:
        if not iv:
            raise CipherError("AES-GCM needs a nonce")
        try:
            return AESGCM(key).decrypt(iv, ciphertext, None)
        except InvalidTag as e:
            raise CipherError("AES-GCM authentication failed") from e
        except ValueError as e:
            raise CipherError(f"AES-GCM: {e}") from e

    mode = _block_mode(algorithm, iv)
    if not ciphertext or len(ciphertext) % 16:
        raise CipherError(f"ciphertext length {len(ciphertext)} is not a multiple of 16")
    decryptor = Cipher(algorithms.AES(key), mode).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()

    unpadder = sym_padding.PKCS7(128).unpadder()
    try:
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as e:
        raise CipherError("bad PKCS7 padding (wrong key?)") from e


def symmetric_encrypt(algorithm: str, key: bytes, iv: bytes | None, plaintext: bytes) -> bytes:
    if algorithm == RC4:
        return stream_cipher_apply(key, plaintext)
    _check_key(key)

    if algorithm == AES_GCM:
        if not iv:
            raise CipherError("AES-GCM needs a nonce")
        return AESGCM(key).encrypt(iv, plaintext, None)

    mode = _block_mode(algorithm, iv)
    padder = sym_padding.PKCS7(128).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), mode).encryptor()
    return encryptor.update(padded) + encryptor.finalize()


def stream_cipher_apply(key: bytes, data: bytes) -> bytes:
    """RC4 keystream XOR; applying it twice with the same key is the identity."""
    if not key:
        raise CipherError("RC4 key is empty")
    state = list(range(256))
    j = 0
    for i in range(256):
        j = (j + state[i] + key[i % len(key)]) % 256
        state[i], state[j] = state[j], state[i]

    i = j = 0
    out = bytearray(len(data))
    for idx, byte in enumerate(data):
        i = (i + 1) % 256
        j = (j + state[i]) % 256
        state[i], state[j] = state[j], state[i]
        out[idx] = byte ^ state[(state[i] + state[j]) % 256]
    return bytes(out)


# ──────────────────────────────
#  Recipes
# ──────────────────────────────
@dataclass(frozen=True)
class CipherRecipe:
    algorithm: str
    key: bytes
    iv: bytes | None = None
    iterations: int = 1               # how many times the recipe is applied

    def decrypt(self, data: bytes) -> bytes:
        for _ in range(self.iterations):
            data = symmetric_decrypt(self.algorithm, self.key, self.iv, data)
        return data


def chain(recipes: Sequence[CipherRecipe], data: bytes) -> bytes:
    """Run recipes in order, each one's output feeding the next."""
    for recipe in recipes:
        data = recipe.decrypt(data)
    return data
