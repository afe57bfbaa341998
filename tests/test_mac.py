"""HMAC capability implementations."""

import hashlib
import hmac

import pytest
from cryptography.hazmat.primitives import hashes

from kdf import Hmac, HmacImpl, SimpleHmac


@pytest.mark.parametrize("mac_class", [Hmac, SimpleHmac])
class TestHmacImpl:

    def test_default_is_sha256(self, mac_class):
        mac = mac_class()
        assert mac.output_size == 32
        assert mac.name == "HMAC-SHA256"

    def test_matches_stdlib_hmac(self, mac_class):
        mac = mac_class(hashes.SHA512())
        h = mac.new(b"key")
        h.update(b"hello ")
        h.update(b"world")
        assert h.finalize() == hmac.new(b"key", b"hello world", hashlib.sha512).digest()

    def test_empty_key(self, mac_class):
        h = mac_class().new(b"")
        h.update(b"data")
        assert h.finalize() == hmac.new(b"\x00" * 32, b"data", hashlib.sha256).digest()

    def test_core_spawns_independent_instances(self, mac_class):
        mac = mac_class()
        core = mac.new_core(b"k" * 32)

        first = mac.from_core(core)
        first.update(b"a")
        second = mac.from_core(core)
        second.update(b"b")

        assert first.finalize() == hmac.new(b"k" * 32, b"a", hashlib.sha256).digest()
        assert second.finalize() == hmac.new(b"k" * 32, b"b", hashlib.sha256).digest()

        # the core itself is never consumed
        third = mac.from_core(core)
        third.update(b"a")
        assert third.finalize() == hmac.new(b"k" * 32, b"a", hashlib.sha256).digest()

    def test_rejects_non_algorithm(self, mac_class):
        with pytest.raises(TypeError):
            mac_class("sha256")

    def test_repr(self, mac_class):
        assert repr(mac_class(hashes.SHA384())) == f"{mac_class.__name__}<HMAC-SHA384>"


def test_hmac_impl_is_sealed():
    with pytest.raises(TypeError):
        class ForeignHmac(HmacImpl):
            def new(self, key):
                raise NotImplementedError

            def new_core(self, key):
                raise NotImplementedError

            def from_core(self, core):
                raise NotImplementedError


def test_hmac_impl_is_abstract():
    with pytest.raises(TypeError):
        HmacImpl()
