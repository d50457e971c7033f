from __future__ import annotations

import io
import logging
import re
from typing import BinaryIO, TextIO

from sscrypt.errors import MalformedCiphertextError
from sscrypt.numtheory import pow_mod
from sscrypt.ss_keys import PrivateKey, PublicKey

log = logging.getLogger(__name__)

SENTINEL = 0xFF

_HEX_RE = re.compile(r"[0-9a-fA-F]+")

# ===== Block codec =====
# block layout: [0xFF][payload...(k-1)]
# The leading 0xFF keeps the block integer from losing leading zero bytes.
# On the way back the payload ends at the first 0x00, so plaintext bytes equal
# to zero do not survive a round trip.

def encode_block(chunk: bytes) -> int:
    return int.from_bytes(bytes([SENTINEL]) + chunk, "big")


def decode_block(m: int) -> bytes:
    raw = m.to_bytes((m.bit_length() + 7) // 8, "big")
    payload = raw[1:]
    end = payload.find(0)
    if end != -1:
        payload = payload[:end]
    return payload


def _has_sentinel(m: int) -> bool:
    nbits = m.bit_length()
    return nbits >= 8 and nbits % 8 == 0 and m >> (nbits - 8) == SENTINEL


def encrypt_block(m: int, pub: PublicKey) -> int:
    if m < 0 or m >= pub.n:
        raise ValueError("m out of range")
    return pow_mod(m, pub.n, pub.n)


def decrypt_block(c: int, priv: PrivateKey) -> int:
    return pow_mod(c, priv.d, priv.pq)

# ===== Streams =====

def _read_up_to(infile: BinaryIO, size: int) -> bytes:
    data = b""
    while len(data) < size:
        chunk = infile.read(size - len(data))
        if not chunk:
            break
        data += chunk
    return data


def encrypt_stream(infile: BinaryIO, outfile: TextIO, pub: PublicKey) -> int:
    """
    Encrypts infile block by block, one hex line per block.
    Returns the number of blocks written.
    """
    k = pub.block_size
    payload_cap = k - 1
    if payload_cap < 1:
        raise ValueError("public key too small to carry payload")

    blocks = 0
    while True:
        chunk = _read_up_to(infile, payload_cap)
        if not chunk:
            break
        c = encrypt_block(encode_block(chunk), pub)
        outfile.write(f"{c:x}\n")
        blocks += 1
        if len(chunk) < payload_cap:
            break

    log.debug("encrypted %d blocks (k=%d)", blocks, k)
    return blocks


def decrypt_stream(infile: TextIO, outfile: BinaryIO, priv: PrivateKey) -> int:
    """
    Decrypts hex lines from infile into outfile, in order.
    Raises MalformedCiphertextError on the first bad line; blocks before it
    are already written.
    """
    blocks = 0
    for lineno, line in enumerate(infile, start=1):
        token = line.strip()
        if not token:
            continue
        if not _HEX_RE.fullmatch(token):
            raise MalformedCiphertextError("ciphertext line is not a hex number", lineno)

        m = decrypt_block(int(token, 16), priv)
        if not _has_sentinel(m):
            log.warning("block on line %d has no 0xff sentinel, wrong key?", lineno)
        outfile.write(decode_block(m))
        blocks += 1

    log.debug("decrypted %d blocks (k=%d)", blocks, priv.block_size)
    return blocks

# ===== In-memory helpers =====

def encrypt_bytes(data: bytes, pub: PublicKey) -> str:
    out = io.StringIO()
    encrypt_stream(io.BytesIO(data), out, pub)
    return out.getvalue()


def decrypt_bytes(text: str, priv: PrivateKey) -> bytes:
    out = io.BytesIO()
    decrypt_stream(io.StringIO(text), out, priv)
    return out.getvalue()
