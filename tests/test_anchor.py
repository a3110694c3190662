"""Tests for anchoring helpers that need no live chain."""

import pytest

from jewelry_lifecycle.crypto.anchor import digest_bytes, anchor_to_chain


class TestDigestBytes:
    def test_prefixed_digest(self) -> None:
        assert digest_bytes("sha256:" + "ab" * 32) == bytes([0xAB]) * 32

    def test_bare_digest(self) -> None:
        assert digest_bytes("00" * 32) == bytes(32)

    def test_wrong_length(self) -> None:
        with pytest.raises(ValueError, match="32 bytes"):
            digest_bytes("sha256:" + "ab" * 16)

    def test_not_hex(self) -> None:
        with pytest.raises(ValueError):
            digest_bytes("sha256:" + "zz" * 32)


def test_bad_digest_rejected_before_any_rpc() -> None:
    # an unreachable endpoint proves the digest is checked first
    with pytest.raises(ValueError, match="32 bytes"):
        anchor_to_chain("sha256:abcd", "http://127.0.0.1:1", "0x" + "ab" * 32)
