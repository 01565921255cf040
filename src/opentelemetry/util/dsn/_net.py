# Copyright The OpenTelemetry Authors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Address helpers shared by the dialect parsers and the attribute deriver."""

from __future__ import annotations

import ipaddress
import re
from typing import Optional, Tuple
from urllib.parse import unquote, unquote_plus

_INVALID_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_INTEGER = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


def split_host_port(hostport: str) -> Tuple[str, str]:
    """Split ``host:port``, ``[v6]:port`` or ``:port`` into host and port.

    Raises:
        ValueError: if the address has no port, too many colons or stray
            brackets.
    """
    colon = hostport.rfind(":")
    if colon < 0:
        raise ValueError(f"missing port in address {hostport!r}")

    if hostport.startswith("["):
        end = hostport.find("]")
        if end < 0:
            raise ValueError(f"missing ']' in address {hostport!r}")
        if end + 1 == len(hostport):
            raise ValueError(f"missing port in address {hostport!r}")
        if end + 1 != colon:
            if hostport[end + 1] == ":":
                raise ValueError(f"too many colons in address {hostport!r}")
            raise ValueError(f"missing port in address {hostport!r}")
        host = hostport[1:end]
        open_from, close_from = 1, end + 1
    else:
        host = hostport[:colon]
        if ":" in host:
            raise ValueError(f"too many colons in address {hostport!r}")
        open_from, close_from = 0, 0

    if "[" in hostport[open_from:]:
        raise ValueError(f"unexpected '[' in address {hostport!r}")
    if "]" in hostport[close_from:]:
        raise ValueError(f"unexpected ']' in address {hostport!r}")
    return host, hostport[colon + 1 :]


def join_host_port(host: str, port: str) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def parse_ip(host: str) -> Optional[str]:
    """Return the canonical text form of ``host`` if it is an IP literal."""
    if not host or "%" in host:
        return None
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return None
    mapped = getattr(address, "ipv4_mapped", None)
    if mapped is not None:
        return str(mapped)
    return str(address)


def parse_int(value: str) -> Optional[int]:
    if _INTEGER.fullmatch(value) is None:
        return None
    number = int(value)
    if not _INT64_MIN <= number <= _INT64_MAX:
        return None
    return number


def unescape(value: str, plus: bool = False) -> str:
    """Percent-decode ``value``, rejecting malformed escapes.

    Raises:
        ValueError: if a ``%`` is not followed by two hex digits.
    """
    match = _INVALID_ESCAPE.search(value)
    if match is not None:
        bad = value[match.start() : match.start() + 3]
        raise ValueError(f"invalid URL escape {bad!r}")
    if plus:
        return unquote_plus(value)
    return unquote(value)
