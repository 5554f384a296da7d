from __future__ import annotations

import ipaddress
import re

from ..exceptions import InvalidHostname

# RFC 1035 limit on the presentation form, without the trailing dot.
MAX_HOSTNAME_LENGTH = 253

# RFC 6874 zone id, unreserved characters only. Interface names are short.
ZONE_ID_REGEX = re.compile(r"[A-Za-z0-9._~\-]{1,64}")


def is_ip_address(hostname: str) -> bool:
    """Returns True if ``hostname`` is an IPv4 or IPv6 literal (brackets allowed)."""
    if hostname.startswith("[") and hostname.endswith("]"):
        hostname = hostname[1:-1]
    # Zone ids ("fe80::1%eth0") aren't understood by ipaddress before 3.9.
    hostname = hostname.split("%", 1)[0]
    try:
        ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return True


def normalize_hostname(hostname: str) -> str:
    """
    Convert a hostname to the ASCII form that can be handed to the system
    resolver.

    IP literals are returned unchanged, minus any surrounding brackets. An
    IPv6 zone id must be plain ASCII.
    Internationalized names are IDNA encoded. A trailing dot is preserved.

    :raises InvalidHostname:
        If the name is empty, has an empty or over-long label, can't be
        IDNA encoded, or carries a malformed zone id.
    """
    if not hostname:
        raise InvalidHostname(hostname, "empty hostname")

    if is_ip_address(hostname):
        address, sep, zone_id = hostname.strip("[]").partition("%")
        if sep and not ZONE_ID_REGEX.fullmatch(zone_id):
            raise InvalidHostname(hostname, "invalid zone id")
        return address + sep + zone_id

    bare = hostname[:-1] if hostname.endswith(".") else hostname
    if len(bare) > MAX_HOSTNAME_LENGTH:
        raise InvalidHostname(hostname, "name too long")

    try:
        ascii_hostname = hostname.encode("idna").decode("ascii")
    except UnicodeError as e:
        raise InvalidHostname(hostname, "label empty or too long") from e

    return ascii_hostname
