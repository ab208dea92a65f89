"""
Encoded hash strings.

A derived key is stored together with everything needed to recompute it,
in the PHC string format::

    $<tag>[$v=<version>]$<name>=<value>[,<name>=<value>...]$<salt>$<key>

Salt and key use the standard base64 alphabet without padding. The field
delimiter ``$`` and the parameter delimiters ``,`` and ``=`` never occur in
that alphabet, so splitting is unambiguous.

Supported schemes:

    $argon2id$v=19$m=19456,t=2,p=1$<salt>$<key>
    $pbkdf2-sha256$i=600000$<salt>$<key>

The Argon2id form is the one produced and accepted by other Argon2
implementations. When parsing, the leading ``$`` is optional.
"""

import base64
import binascii
import re
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

from .errors import InvalidParametersError, MalformedEncodingError, UnsupportedAlgorithmError

SEPARATOR = "$"

_DIGITS = re.compile(r"[0-9]{1,10}")
_B64 = re.compile(r"[A-Za-z0-9+/]*")


@dataclass(frozen=True)
class Scheme:
    """
    Layout of one algorithm's encoded string.

    Attributes:
        tag: Algorithm identifier, the first field
        version: Required value of the ``v=`` field, or None if the scheme
            has no version field
        params: Parameter names, in encoding order
        min_salt: Minimum decoded salt length
        min_key: Minimum decoded key length
    """

    tag: str
    version: Optional[int]
    params: Tuple[str, ...]
    min_salt: int = 1
    min_key: int = 1

    @property
    def field_count(self) -> int:
        # tag, [version], params, salt, key
        return 4 + (self.version is not None)


SCHEMES: Dict[str, Scheme] = {
    scheme.tag: scheme
    for scheme in (
        Scheme("argon2id", 19, ("m", "t", "p"), min_salt=8, min_key=4),
        Scheme("pbkdf2-sha1", None, ("i",)),
        Scheme("pbkdf2-sha256", None, ("i",)),
        Scheme("pbkdf2-sha512", None, ("i",)),
    )
}


@dataclass(frozen=True)
class EncodedHash:
    """
    Parsed form of an encoded hash string.

    Attributes:
        algorithm: Algorithm tag, e.g. "argon2id" or "pbkdf2-sha256"
        params: Parameter values keyed by their encoded names
        salt: Decoded salt bytes
        derived_key: Decoded derived key bytes
        version: Algorithm version, when the scheme carries one
    """

    algorithm: str
    params: Mapping[str, int] = field(hash=False)
    salt: bytes
    derived_key: bytes
    version: Optional[int] = None

    def encode(self) -> str:
        return encode_hash(self.algorithm, self.params, self.salt, self.derived_key, self.version)


def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii").rstrip("=")


def b64decode(text: str, what: str) -> bytes:
    if not _B64.fullmatch(text) or len(text) % 4 == 1:
        raise MalformedEncodingError(f"Invalid base64 in {what} segment")
    try:
        return base64.b64decode(text + "=" * (-len(text) % 4), validate=True)
    except binascii.Error as e:
        raise MalformedEncodingError(f"Invalid base64 in {what} segment: {e}") from e


def _scheme(tag: str) -> Scheme:
    try:
        return SCHEMES[tag]
    except KeyError:
        raise UnsupportedAlgorithmError(
            f"Unsupported algorithm tag: {tag!r}", details={"algorithm": tag}
        ) from None


def encode_hash(
    algorithm: str,
    params: Mapping[str, int],
    salt: bytes,
    derived_key: bytes,
    version: Optional[int] = None,
) -> str:
    """
    Serialize an algorithm tag, its parameters, salt and derived key.

    Args:
        algorithm: Algorithm tag (see SCHEMES)
        params: Parameter values; exactly the scheme's parameter names
        salt: Salt bytes
        derived_key: Derived key bytes
        version: Version field; defaults to the scheme's current version

    Raises:
        UnsupportedAlgorithmError: If the tag or version is not supported
        InvalidParametersError: If the parameters do not match the scheme

    Example:
        >>> encode_hash("pbkdf2-sha256", {"i": 10000}, b"salt", b"key")
        '$pbkdf2-sha256$i=10000$c2FsdA$a2V5'
    """
    scheme = _scheme(algorithm)
    if set(params) != set(scheme.params):
        raise InvalidParametersError(
            f"{algorithm} expects parameters {', '.join(scheme.params)}, "
            f"got {', '.join(sorted(params)) or 'none'}"
        )
    for name in scheme.params:
        value = params[name]
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise InvalidParametersError(f"Parameter {name} must be a non-negative integer, got {value!r}")
    if len(salt) < scheme.min_salt or len(derived_key) < scheme.min_key:
        raise InvalidParametersError(f"Salt or derived key too short for {algorithm}")

    fields = [algorithm]
    if scheme.version is not None:
        if version is None:
            version = scheme.version
        if version != scheme.version:
            raise UnsupportedAlgorithmError(f"Unsupported {algorithm} version: {version}")
        fields.append(f"v={version}")
    fields.append(",".join(f"{name}={params[name]}" for name in scheme.params))
    fields.append(b64encode(bytes(salt)))
    fields.append(b64encode(bytes(derived_key)))
    return SEPARATOR + SEPARATOR.join(fields)


def _parse_version(text: str, scheme: Scheme) -> int:
    name, sep, value = text.partition("=")
    if name != "v" or not sep or not _DIGITS.fullmatch(value):
        raise MalformedEncodingError(f"Invalid version field: {text!r}")
    version = int(value)
    if version != scheme.version:
        raise UnsupportedAlgorithmError(
            f"Unsupported {scheme.tag} version: {version}", details={"version": version}
        )
    return version


def _parse_params(text: str, scheme: Scheme) -> Dict[str, int]:
    params: Dict[str, int] = {}
    for item in text.split(","):
        name, sep, value = item.partition("=")
        if not sep:
            raise MalformedEncodingError(f"Parameter without value: {item!r}")
        if name not in scheme.params:
            raise MalformedEncodingError(f"Unknown {scheme.tag} parameter: {name!r}")
        if name in params:
            raise MalformedEncodingError(f"Duplicate parameter: {name!r}")
        if not _DIGITS.fullmatch(value):
            raise MalformedEncodingError(f"Parameter {name} is not numeric: {value!r}")
        params[name] = int(value)

    missing = [name for name in scheme.params if name not in params]
    if missing:
        raise MalformedEncodingError(f"Missing parameter(s): {', '.join(missing)}")
    return params


def parse_hash(encoded: str) -> EncodedHash:
    """
    Parse an encoded hash string.

    Raises:
        MalformedEncodingError: On any structural violation
        UnsupportedAlgorithmError: On an unknown tag or version

    Example:
        >>> parsed = parse_hash("$pbkdf2-sha256$i=10000$c2FsdA$a2V5")
        >>> parsed.algorithm, parsed.params, parsed.salt
        ('pbkdf2-sha256', {'i': 10000}, b'salt')
    """
    if not isinstance(encoded, str):
        raise MalformedEncodingError(f"Encoded hash must be a string, got {type(encoded).__name__}")

    body = encoded[1:] if encoded.startswith(SEPARATOR) else encoded
    fields = body.split(SEPARATOR)
    if len(fields) < 2:
        raise MalformedEncodingError("Encoded hash has no field separators")

    scheme = _scheme(fields[0])
    if len(fields) != scheme.field_count:
        raise MalformedEncodingError(
            f"{scheme.tag} hash must have {scheme.field_count} fields, got {len(fields)}"
        )

    position = 1
    version = None
    if scheme.version is not None:
        version = _parse_version(fields[position], scheme)
        position += 1

    params = _parse_params(fields[position], scheme)
    salt = b64decode(fields[position + 1], "salt")
    derived_key = b64decode(fields[position + 2], "key")
    if len(salt) < scheme.min_salt:
        raise MalformedEncodingError(f"Salt segment too short: {len(salt)} bytes")
    if len(derived_key) < scheme.min_key:
        raise MalformedEncodingError(f"Key segment too short: {len(derived_key)} bytes")

    return EncodedHash(scheme.tag, params, salt, derived_key, version)
