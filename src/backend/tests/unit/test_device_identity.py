"""
Unit tests for device identity helpers.
"""

import pytest

from api.services.device_identity import (
    generated_device_name,
    identity_key,
    normalize_ip,
    normalize_mac,
)


class TestNormalizeMac:
    """Tests for MAC normalization."""

    @pytest.mark.parametrize(
        "raw",
        [
            "aa:bb:cc:dd:ee:ff",
            "AA-BB-CC-DD-EE-FF",
            "aabb.ccdd.eeff",
            "AABBCCDDEEFF",
            "  aa:bb:cc:dd:ee:ff  ",
        ],
    )
    def test_formats_are_normalized(self, raw):
        assert normalize_mac(raw) == "AA:BB:CC:DD:EE:FF"

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_blank_is_none(self, raw):
        assert normalize_mac(raw) is None

    @pytest.mark.parametrize("raw", ["not-a-mac", "AA:BB:CC:DD:EE", "GG:BB:CC:DD:EE:FF", "AABBCCDDEEFF00"])
    def test_malformed_raises(self, raw):
        with pytest.raises(ValueError):
            normalize_mac(raw)


class TestNormalizeIp:
    """Tests for IP canonicalization."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("10.0.0.5", "10.0.0.5"),
            ("  10.0.0.5 ", "10.0.0.5"),
            ("2001:DB8:0:0::0001", "2001:db8::1"),
        ],
    )
    def test_canonical_form(self, raw, expected):
        assert normalize_ip(raw) == expected

    def test_unparseable_kept_as_received(self):
        assert normalize_ip(" recorder-07.local ") == "recorder-07.local"

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_blank_is_none(self, raw):
        assert normalize_ip(raw) is None


class TestIdentityKey:

    def test_mac_wins(self):
        assert identity_key("AA:BB:CC:DD:EE:FF", "10.0.0.5") == "mac:AA:BB:CC:DD:EE:FF"

    def test_ip_fallback(self):
        assert identity_key(None, " 10.0.0.5 ") == "ip:10.0.0.5"

    def test_generated_name_uses_last_six_hex_digits(self):
        assert generated_device_name("AA:BB:CC:DD:EE:FF") == "Device-DDEEFF"
