from __future__ import annotations

import pytest

from netservice.exceptions import InvalidHostname
from netservice.util.hostname import is_ip_address, normalize_hostname


class TestIsIPAddress:
    @pytest.mark.parametrize(
        "hostname",
        ["192.0.2.1", "::1", "2001:db8::1", "[2001:db8::1]", "fe80::1%eth0"],
    )
    def test_ip_literals(self, hostname: str) -> None:
        assert is_ip_address(hostname)

    @pytest.mark.parametrize(
        "hostname", ["example.com", "192.0.2", "ldap1", "[example.com]", ""]
    )
    def test_names(self, hostname: str) -> None:
        assert not is_ip_address(hostname)


class TestNormalizeHostname:
    @pytest.mark.parametrize(
        ("hostname", "expected"),
        [
            ("ldap1.example.com", "ldap1.example.com"),
            ("ldap1.example.com.", "ldap1.example.com."),
            ("bücher.example", "xn--bcher-kva.example"),
            ("München.example.", "xn--mnchen-3ya.example."),
            ("192.0.2.1", "192.0.2.1"),
            ("[2001:db8::1]", "2001:db8::1"),
            ("2001:db8::1", "2001:db8::1"),
        ],
    )
    def test_normalized(self, hostname: str, expected: str) -> None:
        assert normalize_hostname(hostname) == expected

    @pytest.mark.parametrize(
        "hostname",
        [
            "",
            "bad..example.com",
            ".example.com",
            "a" * 64 + ".example.com",
            ".".join(["a" * 63] * 4) + ".com",
        ],
    )
    def test_invalid(self, hostname: str) -> None:
        with pytest.raises(InvalidHostname) as excinfo:
            normalize_hostname(hostname)
        assert excinfo.value.hostname == hostname

    def test_name_too_long(self) -> None:
        with pytest.raises(InvalidHostname, match="name too long"):
            normalize_hostname("a." * 127 + "bc")

    def test_maximum_length(self) -> None:
        hostname = ".".join(["a" * 63] * 3 + ["a" * 61])

        assert len(hostname) == 253
        assert normalize_hostname(hostname) == hostname
        assert normalize_hostname(hostname + ".") == hostname + "."

    @pytest.mark.parametrize(
        ("hostname", "expected"),
        [
            ("fe80::1%eth0", "fe80::1%eth0"),
            ("[fe80::1%eth0]", "fe80::1%eth0"),
            ("fe80::1%2", "fe80::1%2"),
        ],
    )
    def test_zone_id_kept(self, hostname: str, expected: str) -> None:
        assert normalize_hostname(hostname) == expected

    @pytest.mark.parametrize(
        "hostname",
        ["fe80::1%é", "fe80::1%", "[fe80::1%eth 0]", "fe80::1%" + "a" * 65],
    )
    def test_invalid_zone_id(self, hostname: str) -> None:
        with pytest.raises(InvalidHostname, match="invalid zone id"):
            normalize_hostname(hostname)
