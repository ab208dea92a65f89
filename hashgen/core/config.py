"""
Hashing configuration.

Default cost parameters for each algorithm and the iteration floor applied
to new PBKDF2 hashes. Defaults follow current community guidance (OWASP
password storage recommendations):

- Argon2id: 19 MiB memory, 2 passes, 1 lane
- PBKDF2-HMAC-SHA256: 600,000 iterations, with 10,000 as the hard floor
  for newly produced hashes

Configurations can be built in code or loaded from a JSON document of the
form::

    {
        "argon2": {"memory_cost_kib": 65536, "time_cost": 3, "parallelism": 4},
        "pbkdf2": {"iterations": 600000, "hash_name": "sha512"}
    }
"""

import json
import logging
from dataclasses import dataclass, field, asdict, fields
from pathlib import Path
from typing import Any, Dict, Union

from ..crypto.errors import InvalidParametersError

logger = logging.getLogger(__name__)

SUPPORTED_PBKDF2_HASHES = ("sha1", "sha256", "sha512")


def _require_int(name: str, value: Any, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise InvalidParametersError(
            f"{name} must be an integer >= {minimum}, got {value!r}",
            details={"parameter": name},
        )


@dataclass(frozen=True)
class Argon2Parameters:
    """
    Cost parameters for Argon2id.

    Attributes:
        memory_cost_kib: Memory in KiB (at least 8 per lane)
        time_cost: Number of passes over memory
        parallelism: Number of lanes
        hash_len: Derived key length in bytes
        salt_len: Generated salt length in bytes
    """

    memory_cost_kib: int = 19456
    time_cost: int = 2
    parallelism: int = 1
    hash_len: int = 32
    salt_len: int = 16

    def __post_init__(self):
        _require_int("parallelism", self.parallelism, 1)
        _require_int("memory_cost_kib", self.memory_cost_kib, 8 * self.parallelism)
        _require_int("time_cost", self.time_cost, 1)
        _require_int("hash_len", self.hash_len, 4)
        _require_int("salt_len", self.salt_len, 8)


@dataclass(frozen=True)
class PBKDF2Parameters:
    """
    Parameters for PBKDF2-HMAC.

    Attributes:
        iterations: HMAC iterations per output block
        hash_name: Underlying digest ("sha1", "sha256" or "sha512")
        hash_len: Derived key length in bytes
        salt_len: Generated salt length in bytes
        min_iterations: Policy floor for newly produced hashes
    """

    iterations: int = 600000
    hash_name: str = "sha256"
    hash_len: int = 32
    salt_len: int = 16
    min_iterations: int = 10000

    def __post_init__(self):
        _require_int("min_iterations", self.min_iterations, 1)
        _require_int("iterations", self.iterations, 1)
        _require_int("hash_len", self.hash_len, 1)
        _require_int("salt_len", self.salt_len, 1)
        if self.hash_name not in SUPPORTED_PBKDF2_HASHES:
            raise InvalidParametersError(
                f"Unsupported PBKDF2 hash function: {self.hash_name!r}. "
                f"Must be one of {', '.join(SUPPORTED_PBKDF2_HASHES)}",
                details={"parameter": "hash_name"},
            )


def _build(cls, section: str, values: Any):
    if not isinstance(values, dict):
        raise InvalidParametersError(f"Configuration section '{section}' must be an object")
    known = {f.name for f in fields(cls)}
    unknown = set(values) - known
    if unknown:
        raise InvalidParametersError(
            f"Unknown {section} setting(s): {', '.join(sorted(unknown))}",
            details={"section": section},
        )
    return cls(**values)


@dataclass(frozen=True)
class HashingConfig:
    """Parameters for every supported algorithm."""

    argon2: Argon2Parameters = field(default_factory=Argon2Parameters)
    pbkdf2: PBKDF2Parameters = field(default_factory=PBKDF2Parameters)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HashingConfig":
        """Build a configuration; missing sections and keys keep their defaults."""
        if not isinstance(data, dict):
            raise InvalidParametersError("Configuration must be a JSON object")
        unknown = set(data) - {"argon2", "pbkdf2"}
        if unknown:
            raise InvalidParametersError(f"Unknown configuration section(s): {', '.join(sorted(unknown))}")
        return cls(
            argon2=_build(Argon2Parameters, "argon2", data.get("argon2", {})),
            pbkdf2=_build(PBKDF2Parameters, "pbkdf2", data.get("pbkdf2", {})),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "HashingConfig":
        """
        Load a configuration from a JSON file.

        Raises:
            InvalidParametersError: If the file is not valid JSON or holds
                invalid settings
            OSError: If the file cannot be read
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise InvalidParametersError(f"Invalid configuration file {path}: {e}") from e

        config = cls.from_dict(data)
        logger.debug(f"Loaded hashing configuration from {path}")
        return config
