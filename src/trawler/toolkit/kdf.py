"""
Key derivation.

  pbkdf2 — PBKDF2-HMAC (CryptoJS.PBKDF2 / WebCrypto deriveBits)
  evp    — OpenSSL EVP_BytesToKey: D_i = H(D_{i-1} || password || salt),
           the scheme behind CryptoJS.AES.decrypt(text, passphrase)
"""
from __future__ import annotations
import hashlib

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..errors import CipherError
from .ciphers import AES_CBC, symmetric_decrypt

_HASHES = {
    "sha1": hashes.SHA1,
    "sha256": hashes.SHA256,
    "sha512": hashes.SHA512,
    "md5": hashes.MD5,
}

SALTED_MAGIC = b"Salted__"


def _as_bytes(v: str | bytes) -> bytes:
    return v.encode("utf-8") if isinstance(v, str) else v


def derive_key(
    password: str | bytes,
    salt: bytes,
    iterations: int,
    output_len: int,
    *,
    method: str = "pbkdf2",
    hash_name: str = "sha256",
) -> bytes:
    password = _as_bytes(password)
    if iterations < 1:
        raise CipherError(f"iterations must be >= 1, got {iterations}")
    if output_len < 1:
        raise CipherError(f"output_len must be >= 1, got {output_len}")

    if method == "pbkdf2":
        try:
            algo = _HASHES[hash_name]()
        except KeyError:
            raise CipherError(f"unsupported hash: {hash_name}") from None
        kdf = PBKDF2HMAC(algorithm=algo, length=output_len, salt=salt, iterations=iterations)
        return kdf.derive(password)

    if method == "evp":
        return _evp_stream(password, salt, iterations, output_len, hash_name)

    raise CipherError(f"unsupported kdf: {method}")


def _evp_stream(password: bytes, salt: bytes, iterations: int, length: int, hash_name: str) -> bytes:
    try:
        hashlib.new(hash_name)
    except ValueError:
        raise CipherError(f"unsupported hash: {hash_name}") from None

    stream = b""
    block = b""
    while len(stream) < length:
        block = hashlib.new(hash_name, block + password + salt).digest()
        for _ in range(iterations - 1):
            block = hashlib.new(hash_name, block).digest()
        stream += block
    return stream[:length]


def evp_bytes_to_key(
    password: str | bytes,
    salt: bytes,
    key_len: int = 32,
    iv_len: int = 16,
    iterations: int = 1,
    hash_name: str = "md5",
) -> tuple[bytes, bytes]:
    """Derive and split the EVP stream into (key, iv)."""
    material = derive_key(password, salt, iterations, key_len + iv_len,
                          method="evp", hash_name=hash_name)
    return material[:key_len], material[key_len:]


def decrypt_openssl_salted(password: str | bytes, blob: bytes) -> bytes:
    """
    Decrypt an OpenSSL/CryptoJS envelope: b"Salted__" + 8-byte salt + ciphertext,
    AES-256-CBC with EVP(MD5) key/iv.
    """
    if len(blob) < 16 or blob[:8] != SALTED_MAGIC:
        raise CipherError("missing Salted__ header")
    key, iv = evp_bytes_to_key(password, blob[8:16])
    return symmetric_decrypt(AES_CBC, key, iv, blob[16:])
