"""Shared pytest fixtures for the sscrypt test suite."""

import pytest

from sscrypt.numtheory import make_rng
from sscrypt.ss_keys import generate_keypair


@pytest.fixture()
def rng():
    """Deterministic generator so prime searches are reproducible."""
    return make_rng(1234)


@pytest.fixture(scope="session")
def keypair():
    """256-bit SS key pair, generated once per session."""
    return generate_keypair(nbits=256, iters=20, rng=make_rng(2024), username="alice")


@pytest.fixture(scope="session")
def small_keypair():
    return generate_keypair(nbits=64, iters=20, rng=make_rng(7), username="bob")
