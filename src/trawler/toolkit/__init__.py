"""Stateless byte-transform primitives: ciphers, key derivation, schedule transforms, JS unpacker."""
from .ciphers import (
    AES_CBC, AES_ECB, AES_GCM, RC4,
    CipherRecipe, chain, stream_cipher_apply, symmetric_decrypt, symmetric_encrypt,
)
from .encoding import b64decode, b64encode, b64url_encode, hex_decode, utf8
from .kdf import decrypt_openssl_salted, derive_key, evp_bytes_to_key
from .schedule import SchedulePipeline, Stage, schedule_transform
from .unpacker import deobfuscate_packed_script, detect, find_packed, unpack
