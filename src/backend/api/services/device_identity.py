"""
Device identity resolution.

Heartbeats and recordings identify the reporting device by MAC address when
one is sent, and by IP address otherwise. Every query that needs to answer
"which registered device is this" goes through the helpers below so the rule
is applied the same way everywhere:

- identity_key() is the grouping key stored on each heartbeat at ingest.
  "mac:<MAC>" when a MAC was reported, "ip:<IP>" otherwise. Identities are
  never merged after the fact: a device that first reported without a MAC
  and later with one shows up as two identities.
- device_match_clause() is the join predicate from an event row to the
  devices table: MAC against devices.device_mac when the event has a MAC,
  IP against devices.ip_address only when it does not.
"""

import ipaddress
import re
from typing import Optional

from sqlalchemy import and_, or_

from db.models import Device

_MAC_HEX = re.compile(r"^[0-9A-F]{12}$")


def normalize_mac(value: Optional[str]) -> Optional[str]:
    """
    Normalize a MAC address to upper-case, colon-separated form.

    Accepts "aa:bb:cc:dd:ee:ff", "AA-BB-CC-DD-EE-FF", "aabb.ccdd.eeff" and
    "aabbccddeeff". Blank input returns None.

    Raises:
        ValueError: If the value is not a 48-bit MAC address
    """
    if value is None:
        return None
    stripped = value.strip()
    if not stripped:
        return None

    hex_digits = re.sub(r"[:\-.]", "", stripped).upper()
    if not _MAC_HEX.match(hex_digits):
        raise ValueError(f"Invalid MAC address: {value}")
    return ":".join(hex_digits[i:i + 2] for i in range(0, 12, 2))


def normalize_ip(value: Optional[str]) -> Optional[str]:
    """
    Canonical text form of an IP address, the same form devices are stored in.

    "2001:DB8:0:0::0001" becomes "2001:db8::1". Values that do not parse are
    returned stripped but otherwise as received. Blank input returns None.
    """
    if value is None:
        return None
    stripped = value.strip()
    if not stripped:
        return None
    try:
        return str(ipaddress.ip_address(stripped))
    except ValueError:
        return stripped


def identity_key(mac_address: Optional[str], ip_address: str) -> str:
    """Grouping key for a reporting device; expects an already-normalized MAC."""
    if mac_address:
        return f"mac:{mac_address}"
    return f"ip:{ip_address.strip()}"


def generated_device_name(mac_address: str) -> str:
    """Display name for an auto-registered device: last 6 hex digits of its MAC."""
    return f"Device-{mac_address.replace(':', '')[-6:]}"


def device_match_clause(mac_column, ip_column):
    """
    Join predicate from an event table (heartbeats, recordings) to devices.

    Args:
        mac_column: The event's MAC address column
        ip_column: The event's IP address column
    """
    return or_(
        and_(mac_column.is_not(None), Device.device_mac == mac_column),
        and_(mac_column.is_(None), Device.ip_address == ip_column),
    )
