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

"""
Semantic convention attributes derived from parsed connection settings.

Credentials never reach the returned attributes: the MySQL connection string
is rebuilt from a redacted descriptor, and a PostgreSQL connection string is
only attached when its settings hold no password at all.
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional

from opentelemetry.instrumentation._semconv import set_string_attribute
from opentelemetry.semconv.trace import DbSystemValues, SpanAttributes
from opentelemetry.util.dsn._net import parse_int, parse_ip, split_host_port
from opentelemetry.util.dsn.mysql import ConnectionDescriptor
from opentelemetry.util.dsn.transport import NetTransportValues
from opentelemetry.util.types import AttributeValue

AttributeSet = Dict[str, AttributeValue]

_MYSQL_TRANSPORTS = {
    "pipe": NetTransportValues.PIPE,
    "unix": NetTransportValues.UNIX,
    "socket": NetTransportValues.UNIX,
    "memory": NetTransportValues.INPROC,
    "tcp": NetTransportValues.IP_TCP,
    "tcp4": NetTransportValues.IP_TCP,
    "tcp6": NetTransportValues.IP_TCP,
}


def _first_entry(value: Optional[str]) -> Optional[str]:
    """Return the first of a comma-separated list, ``None`` when empty."""
    if not value:
        return None
    return value.split(",")[0] or None


def _first_ip(*candidates: Optional[str]) -> Optional[str]:
    for candidate in candidates:
        if candidate:
            ip = parse_ip(candidate)
            if ip is not None:
                return ip
    return None


def _set_peer_host(attributes: AttributeSet, host: str) -> None:
    ip = parse_ip(host)
    if ip is None:
        set_string_attribute(attributes, SpanAttributes.NET_PEER_NAME, host)
    else:
        attributes[SpanAttributes.NET_PEER_IP] = ip


def _set_peer_port(attributes: AttributeSet, port: Optional[str]) -> None:
    if not port:
        return
    number = parse_int(port)
    if number is not None:
        attributes[SpanAttributes.NET_PEER_PORT] = number


def unidentified_attributes() -> AttributeSet:
    return {SpanAttributes.DB_SYSTEM: DbSystemValues.OTHER_SQL.value}


def postgres_attributes(
    dsn: str, settings: Mapping[str, str]
) -> AttributeSet:
    """Derive attributes from PostgreSQL settings.

    Args:
        dsn: The connection string ``settings`` were parsed from. Attached
            as ``db.connection_string`` only when ``settings`` has no
            ``password`` key.
        settings: Normalized settings, see
            :func:`opentelemetry.util.dsn.postgres.parse_settings`.
    """
    attributes: AttributeSet = {
        SpanAttributes.DB_SYSTEM: DbSystemValues.POSTGRESQL.value,
        SpanAttributes.DB_NAME: settings.get("database", ""),
    }
    if dsn and "password" not in settings:
        attributes[SpanAttributes.DB_CONNECTION_STRING] = dsn
    set_string_attribute(attributes, SpanAttributes.DB_USER, settings.get("user"))

    # Only the first of several hosts is reported.
    hostaddr = _first_entry(settings.get("hostaddr"))
    host = _first_entry(settings.get("host"))
    if hostaddr:
        attributes[SpanAttributes.NET_TRANSPORT] = (
            NetTransportValues.IP_TCP.value
        )
        peer_ip = _first_ip(hostaddr, host)
        if peer_ip is not None:
            attributes[SpanAttributes.NET_PEER_IP] = peer_ip
    elif host and host.startswith("/"):
        attributes[SpanAttributes.NET_TRANSPORT] = NetTransportValues.UNIX.value
        attributes[SpanAttributes.NET_PEER_NAME] = host
    elif host:
        attributes[SpanAttributes.NET_TRANSPORT] = (
            NetTransportValues.IP_TCP.value
        )
        _set_peer_host(attributes, host)

    _set_peer_port(attributes, _first_entry(settings.get("port")))
    return attributes


def mysql_attributes(descriptor: ConnectionDescriptor) -> AttributeSet:
    """Derive attributes from a MySQL connection descriptor."""
    attributes: AttributeSet = {
        SpanAttributes.DB_SYSTEM: DbSystemValues.MYSQL.value,
        SpanAttributes.DB_NAME: descriptor.dbname,
        SpanAttributes.DB_CONNECTION_STRING: descriptor.redact().format_dsn(),
    }
    set_string_attribute(attributes, SpanAttributes.DB_USER, descriptor.user)

    transport = _MYSQL_TRANSPORTS.get(descriptor.net)
    if transport is None:
        return attributes
    attributes[SpanAttributes.NET_TRANSPORT] = transport.value

    if transport is NetTransportValues.IP_TCP:
        try:
            host, port = split_host_port(descriptor.addr)
        except ValueError:
            return attributes
        _set_peer_host(attributes, host)
        _set_peer_port(attributes, port)
    return attributes
