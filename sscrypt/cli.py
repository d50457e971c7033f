from __future__ import annotations

import argparse
import contextlib
import logging
import os
import sys
from typing import List, Optional

from sscrypt import config
from sscrypt.errors import SSError
from sscrypt.numtheory import make_rng
from sscrypt.ss_block import decrypt_stream, encrypt_stream
from sscrypt.ss_keys import (
    MIN_NBITS,
    make_private,
    make_public,
    PrivateKey,
    PublicKey,
    read_private,
    read_public,
    write_private,
    write_public,
)

log = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.INFO if verbose else getattr(logging, config.LOG_LEVEL, logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)
    logging.getLogger("sscrypt").setLevel(level)


def _show(name: str, value: int) -> None:
    print(f"{name:<4}({value.bit_length()} bits) = {value}", file=sys.stderr)


def _current_user() -> str:
    return os.getenv("USER") or os.getenv("USERNAME") or ""


def _open_private_for_write(path: str):
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    try:
        # O_CREAT mode is ignored for files that already exist
        if hasattr(os, "fchmod"):
            os.fchmod(fd, 0o600)
        else:
            os.chmod(path, 0o600)
        return os.fdopen(fd, "w", encoding="ascii")
    except BaseException:
        os.close(fd)
        raise

# ===== keygen =====

def _keygen_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="ss-keygen", description="Generates an SS public/private key pair.")
    ap.add_argument("-b", dest="bits", type=int, default=config.KEY_BITS,
                    help=f"minimum bits needed for public key n (default: {config.KEY_BITS})")
    ap.add_argument("-i", dest="iters", type=int, default=config.MR_ITERS,
                    help=f"Miller-Rabin iterations for testing primes (default: {config.MR_ITERS})")
    ap.add_argument("-n", dest="pbfile", default=config.PUB_FILE,
                    help=f"public key file (default: {config.PUB_FILE})")
    ap.add_argument("-d", dest="pvfile", default=config.PRIV_FILE,
                    help=f"private key file (default: {config.PRIV_FILE})")
    ap.add_argument("-s", dest="seed", type=int, default=None, help="random seed for testing")
    ap.add_argument("-t", dest="timeout", type=float, default=config.KEYGEN_TIMEOUT,
                    help="give up the prime search after this many seconds")
    ap.add_argument("-v", dest="verbose", action="store_true", help="display verbose program output")
    return ap


def keygen_main(argv: Optional[List[str]] = None) -> int:
    ap = _keygen_parser()
    args = ap.parse_args(argv)
    if args.bits < MIN_NBITS:
        ap.error(f"number of bits for the public key must be >= {MIN_NBITS}")
    if args.iters < 1:
        ap.error("Miller-Rabin iterations must be >= 1")
    _setup_logging(args.verbose)

    rng = make_rng(args.seed)
    username = _current_user()
    try:
        p, q, n = make_public(args.bits, args.iters, rng, args.timeout)
        d, pq = make_private(p, q)

        with open(args.pbfile, "w", encoding="utf-8") as f:
            write_public(PublicKey(n=n, username=username), f)
        with _open_private_for_write(args.pvfile) as f:
            write_private(PrivateKey(pq=pq, d=d), f)
    except (SSError, ValueError, OSError) as e:
        print(f"ss-keygen: error: {e}", file=sys.stderr)
        return 1

    log.info("wrote %s and %s", args.pbfile, args.pvfile)
    if args.verbose:
        print(f"user = {username}", file=sys.stderr)
        _show("p", p)
        _show("q", q)
        _show("n", n)
        _show("pq", pq)
        _show("d", d)
    return 0

# ===== encrypt / decrypt =====

def _stream_parser(prog: str, description: str, action: str, key_default: str, key_name: str) -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog=prog, description=description)
    ap.add_argument("-i", dest="infile", default=None, help=f"input file of data to {action} (default: stdin)")
    ap.add_argument("-o", dest="outfile", default=None, help=f"output file for {action}ed data (default: stdout)")
    ap.add_argument("-n", dest="keyfile", default=key_default, help=f"{key_name} file (default: {key_default})")
    ap.add_argument("-v", dest="verbose", action="store_true", help="display verbose program output")
    return ap


def encrypt_main(argv: Optional[List[str]] = None) -> int:
    args = _stream_parser(
        "ss-encrypt", "Encrypts data using SS encryption.", "encrypt", config.PUB_FILE, "public key",
    ).parse_args(argv)
    _setup_logging(args.verbose)

    try:
        with open(args.keyfile, "r", encoding="utf-8") as f:
            pub = read_public(f)
        if args.verbose:
            print(f"user = {pub.username}", file=sys.stderr)
            _show("n", pub.n)

        with contextlib.ExitStack() as stack:
            src = stack.enter_context(open(args.infile, "rb")) if args.infile else sys.stdin.buffer
            dst = stack.enter_context(open(args.outfile, "w", encoding="ascii")) if args.outfile else sys.stdout
            encrypt_stream(src, dst, pub)
            dst.flush()
    except (SSError, ValueError, OSError) as e:
        print(f"ss-encrypt: error: {e}", file=sys.stderr)
        return 1
    return 0


def decrypt_main(argv: Optional[List[str]] = None) -> int:
    args = _stream_parser(
        "ss-decrypt", "Decrypts data using SS decryption.", "decrypt", config.PRIV_FILE, "private key",
    ).parse_args(argv)
    _setup_logging(args.verbose)

    try:
        with open(args.keyfile, "r", encoding="utf-8") as f:
            priv = read_private(f)
        if args.verbose:
            _show("pq", priv.pq)
            _show("d", priv.d)

        with contextlib.ExitStack() as stack:
            src = stack.enter_context(open(args.infile, "r", encoding="ascii", errors="replace")) if args.infile else sys.stdin
            dst = stack.enter_context(open(args.outfile, "wb")) if args.outfile else sys.stdout.buffer
            try:
                decrypt_stream(src, dst, priv)
            finally:
                dst.flush()
    except (SSError, ValueError, OSError) as e:
        print(f"ss-decrypt: error: {e}", file=sys.stderr)
        return 1
    return 0
