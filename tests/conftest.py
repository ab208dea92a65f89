# Hashgen Test Configuration
# This file contains test settings and fixtures

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from hashgen.core.config import Argon2Parameters, HashingConfig, PBKDF2Parameters


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return os.path.dirname(os.path.dirname(__file__))


@pytest.fixture
def fast_argon2_params():
    """Argon2id parameters small enough for a pure-Python test run."""
    return Argon2Parameters(memory_cost_kib=64, time_cost=1, parallelism=1)


@pytest.fixture
def fast_pbkdf2_params():
    """PBKDF2 parameters at the policy floor."""
    return PBKDF2Parameters(iterations=10000)


@pytest.fixture
def fast_config(fast_argon2_params, fast_pbkdf2_params):
    """Hashing configuration built from the fast parameter sets."""
    return HashingConfig(argon2=fast_argon2_params, pbkdf2=fast_pbkdf2_params)


@pytest.fixture
def near_miss_plaintexts():
    """Plaintexts that differ from 'correct horse' by a single character."""
    base = "correct horse"
    variants = {
        "Correct horse",
        "correct horsE",
        "correct hors",
        "correct horse ",
        " correct horse",
        "correct  horse",
        "correct_horse",
        "corrept horse",
        "correct horsé",
        "",
    }
    variants.discard(base)
    return base, sorted(variants)
