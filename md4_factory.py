"""Choose between the platform's MD4 and the pure Python one.

The choice is made once, at import time, and stored in DEFAULT_ENGINE.
Callers that need a specific engine pass prefer_native to create().
"""
import functools
import hashlib
from abc import ABC, abstractmethod

from md4 import MD4, as_window


class HashEngine(ABC):
    """Streaming interface shared by every MD4 engine."""

    name = "md4"
    digest_size = 16
    block_size = 64

    @abstractmethod
    def initialize(self):
        pass

    @abstractmethod
    def update(self, data, offset=0, length=None):
        pass

    @abstractmethod
    def finalize(self):
        pass

    @abstractmethod
    def copy(self):
        pass


HashEngine.register(MD4)


def _new_native():
    return hashlib.new("md4", usedforsecurity=False)


@functools.lru_cache(maxsize=None)
def _probe_native():
    try:
        h = _new_native()
    except ValueError:
        # not compiled in, or OpenSSL without the legacy provider
        return False
    return h.hexdigest() == "31d6cfe0d16ae931b73c59d7e0c089c0"


def native_available():
    """Return True if hashlib can build an MD4 object on this platform."""
    return _probe_native()


class NativeMD4(HashEngine):
    """hashlib-backed MD4 with the same reset-on-finalize behaviour as MD4."""

    def __init__(self, data=b""):
        self.initialize()
        if data:
            self.update(data)

    def initialize(self):
        self._hash = _new_native()

    def update(self, data, offset=0, length=None):
        self._hash.update(as_window(data, offset, length))

    def finalize(self):
        try:
            return self._hash.digest()
        finally:
            self.initialize()

    def copy(self):
        other = type(self).__new__(type(self))
        other._hash = self._hash.copy()
        return other


def select_engine(prefer_native=True):
    """Return the engine class to use: NativeMD4 only if wanted and present."""
    if prefer_native and native_available():
        return NativeMD4
    return MD4


DEFAULT_ENGINE = select_engine()


def create(prefer_native=None):
    """Build a fresh MD4 context from DEFAULT_ENGINE or an explicit choice."""
    if prefer_native is None:
        return DEFAULT_ENGINE()
    return select_engine(prefer_native)()
