"""
Keyed-Hash (HMAC) Capability

The HKDF construction only needs four things from its MAC:
- keyed initialization from a key of any length (including empty)
- incremental, order-sensitive absorption
- fixed-length finalization
- a reusable keyed "core" that spawns independent working instances
  without repeating the key schedule

Two implementations are provided:
- Hmac: cryptography's HMAC engine
- SimpleHmac: the standard library hmac/hashlib pair

HmacImpl is sealed: only this module may define implementations.
"""

import abc
import hashlib
import hmac
from typing import Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import hmac as crypto_hmac

from .constants import DEFAULT_ALGORITHM


class HmacImpl(abc.ABC):
    """
    MAC strategy bound to one hash algorithm.

    Working instances returned by new() and from_core() expose
    update(data) and finalize() -> bytes.
    """

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if cls.__module__ != __name__:
            raise TypeError(f"{cls.__qualname__}: HmacImpl cannot be implemented outside {__name__}")

    def __init__(self, algorithm: Optional[hashes.HashAlgorithm] = None):
        if algorithm is None:
            algorithm = DEFAULT_ALGORITHM()
        if not isinstance(algorithm, hashes.HashAlgorithm):
            raise TypeError("algorithm must be a cryptography HashAlgorithm instance")
        self.algorithm = algorithm

    @property
    def output_size(self) -> int:
        """Native output size in bytes."""
        return self.algorithm.digest_size

    @property
    def name(self) -> str:
        return f"HMAC-{self.algorithm.name.upper()}"

    @abc.abstractmethod
    def new(self, key: bytes):
        """Return a working instance keyed with key."""

    @abc.abstractmethod
    def new_core(self, key: bytes):
        """Return a reusable keyed core for key."""

    @abc.abstractmethod
    def from_core(self, core):
        """Return a fresh working instance cloned from core."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}<{self.name}>"


class _HmacInstance:
    """Uniform update/finalize view over cryptography's HMAC object."""

    def __init__(self, ctx: crypto_hmac.HMAC):
        self._ctx = ctx

    def update(self, data: bytes) -> None:
        self._ctx.update(data)

    def finalize(self) -> bytes:
        return self._ctx.finalize()


class Hmac(HmacImpl):
    """HMAC backed by cryptography.hazmat.primitives.hmac."""

    def new(self, key: bytes) -> _HmacInstance:
        return _HmacInstance(self.new_core(key))

    def new_core(self, key: bytes) -> crypto_hmac.HMAC:
        return crypto_hmac.HMAC(bytes(key), self.algorithm)

    def from_core(self, core: crypto_hmac.HMAC) -> _HmacInstance:
        return _HmacInstance(core.copy())


class _SimpleHmacInstance:
    """Uniform update/finalize view over the standard library hmac object."""

    def __init__(self, ctx: hmac.HMAC):
        self._ctx = ctx

    def update(self, data: bytes) -> None:
        self._ctx.update(data)

    def finalize(self) -> bytes:
        return self._ctx.digest()


class SimpleHmac(HmacImpl):
    """HMAC backed by the standard library hmac and hashlib modules."""

    def __init__(self, algorithm: Optional[hashes.HashAlgorithm] = None):
        super().__init__(algorithm)
        # cryptography names use dashes ("sha3-256"), hashlib uses underscores
        self._digest_name = self.algorithm.name.replace("-", "_")
        if self._digest_name not in hashlib.algorithms_available:
            raise ValueError(f"hashlib does not provide {self.algorithm.name}")

    def new(self, key: bytes) -> _SimpleHmacInstance:
        return _SimpleHmacInstance(self.new_core(key))

    def new_core(self, key: bytes) -> hmac.HMAC:
        return hmac.new(bytes(key), digestmod=self._digest_name)

    def from_core(self, core: hmac.HMAC) -> _SimpleHmacInstance:
        return _SimpleHmacInstance(core.copy())
