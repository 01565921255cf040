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
MySQL data source names follow the grammar popularized by go-sql-driver and
reused by most SQL tracing integrations::

    [user[:password]@][net[(addr)]]/dbname[?param1=value1&...&paramN=valueN]

For example ``app:secret@tcp(db.internal:3306)/orders?parseTime=true``.
:func:`parse_dsn` turns such a string into a :class:`ConnectionDescriptor`,
and :meth:`ConnectionDescriptor.format_dsn` writes one back. Use
:meth:`ConnectionDescriptor.redact` before exposing the written form.
"""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, List, Tuple
from urllib.parse import quote, quote_plus
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from opentelemetry.util.dsn._net import (
    join_host_port,
    parse_int,
    split_host_port,
    unescape,
)
from opentelemetry.util.dsn.exceptions import DSNSyntaxError

DEFAULT_COLLATION = "utf8mb4_general_ci"
DEFAULT_MAX_ALLOWED_PACKET = 64 << 20
DEFAULT_PORT = "3306"

_DEFAULT_ADDRESSES = {
    "tcp": join_host_port("127.0.0.1", DEFAULT_PORT),
    "unix": "/tmp/mysql.sock",
}

# Multibyte collations where a backslash can be the trailing byte of a
# character, which breaks client side parameter interpolation.
_UNSAFE_COLLATIONS = frozenset(
    {
        "big5_chinese_ci",
        "sjis_japanese_ci",
        "gbk_chinese_ci",
        "big5_bin",
        "gb2312_bin",
        "gbk_bin",
        "sjis_bin",
        "cp932_japanese_ci",
        "cp932_bin",
        "gb18030_chinese_ci",
        "gb18030_bin",
    }
)

_TRUE_VALUES = frozenset({"1", "true", "TRUE", "True"})
_FALSE_VALUES = frozenset({"0", "false", "FALSE", "False"})

_BOOL_OPTIONS = {
    "allowAllFiles": "allow_all_files",
    "allowCleartextPasswords": "allow_cleartext_passwords",
    "allowFallbackToPlaintext": "allow_fallback_to_plaintext",
    "allowNativePasswords": "allow_native_passwords",
    "allowOldPasswords": "allow_old_passwords",
    "checkConnLiveness": "check_conn_liveness",
    "clientFoundRows": "client_found_rows",
    "columnsWithAlias": "columns_with_alias",
    "interpolateParams": "interpolate_params",
    "multiStatements": "multi_statements",
    "parseTime": "parse_time",
    "rejectReadOnly": "reject_read_only",
}
_DURATION_OPTIONS = {
    "readTimeout": "read_timeout",
    "timeout": "timeout",
    "writeTimeout": "write_timeout",
}

# Microseconds per unit.
_DURATION_UNITS = {
    "ns": 0.001,
    "us": 1,
    "µs": 1,
    "μs": 1,
    "ms": 1_000,
    "s": 1_000_000,
    "m": 60_000_000,
    "h": 3_600_000_000,
}
# Durations are bounded by a signed 64-bit count of nanoseconds.
_MAX_DURATION_MICROS = ((1 << 63) - 1) / 1_000

_DURATION_COMPONENT = re.compile(
    r"([0-9]*(?:\.[0-9]*)?)(ns|us|µs|μs|ms|s|m|h)"
)

_ERR_NO_SLASH = "invalid DSN: missing the slash separating the database name"
_ERR_ADDR = (
    "invalid DSN: network address not terminated (missing closing brace)"
)
_ERR_UNESCAPED = "invalid DSN: did you forget to escape a param value?"
_ERR_UNSAFE_COLLATION = (
    "invalid DSN: interpolateParams can not be used with unsafe collations"
)


def parse_duration(value: str) -> timedelta:
    """Parse a duration such as ``30s``, ``1m30s`` or ``1.5ms``.

    Raises:
        ValueError: if ``value`` is not a valid duration.
    """
    text = value
    sign = 1
    if text and text[0] in "+-":
        if text[0] == "-":
            sign = -1
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise ValueError(f"invalid duration {value!r}")

    micros = 0.0
    position = 0
    while position < len(text):
        match = _DURATION_COMPONENT.match(text, position)
        if match is None or match.group(1) in ("", "."):
            raise ValueError(f"invalid duration {value!r}")
        micros += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    if micros > _MAX_DURATION_MICROS:
        raise ValueError(f"invalid duration {value!r}")
    return timedelta(microseconds=sign * micros)


def _format_fraction(value: int, unit: int) -> str:
    whole, fraction = divmod(value, unit)
    if not fraction:
        return str(whole)
    digits = str(fraction).rjust(len(str(unit)) - 1, "0").rstrip("0")
    return f"{whole}.{digits}"


def format_duration(value: timedelta) -> str:
    """Inverse of :func:`parse_duration`, e.g. ``1m30s`` or ``250ms``."""
    micros = value // timedelta(microseconds=1)
    if micros == 0:
        return "0s"
    sign = "-" if micros < 0 else ""
    micros = abs(micros)
    if micros < 1_000:
        return f"{sign}{micros}µs"
    if micros < 1_000_000:
        return f"{sign}{_format_fraction(micros, 1_000)}ms"

    hours, micros = divmod(micros, 3_600_000_000)
    minutes, micros = divmod(micros, 60_000_000)
    seconds = _format_fraction(micros, 1_000_000) + "s"
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}"
    if minutes:
        return f"{sign}{minutes}m{seconds}"
    return sign + seconds


@dataclass
class ConnectionDescriptor:
    """Structured form of a MySQL data source name.

    ``params`` holds every parameter that is not one of the typed options.
    ``redacted`` is set on copies produced by :meth:`redact`.
    """

    user: str = ""
    password: str = ""
    net: str = ""
    addr: str = ""
    dbname: str = ""
    params: Dict[str, str] = field(default_factory=dict)
    collation: str = DEFAULT_COLLATION
    loc: str = "UTC"
    max_allowed_packet: int = DEFAULT_MAX_ALLOWED_PACKET
    server_pub_key: str = ""
    tls_config: str = ""
    connection_attributes: str = ""
    timeout: timedelta = timedelta(0)
    read_timeout: timedelta = timedelta(0)
    write_timeout: timedelta = timedelta(0)
    allow_all_files: bool = False
    allow_cleartext_passwords: bool = False
    allow_fallback_to_plaintext: bool = False
    allow_native_passwords: bool = True
    allow_old_passwords: bool = False
    check_conn_liveness: bool = True
    client_found_rows: bool = False
    columns_with_alias: bool = False
    interpolate_params: bool = False
    multi_statements: bool = False
    parse_time: bool = False
    reject_read_only: bool = False
    redacted: bool = False

    def redact(self) -> "ConnectionDescriptor":
        """Return a copy without the password."""
        return dataclasses.replace(
            self, password="", params=dict(self.params), redacted=True
        )

    def format_dsn(self) -> str:
        """Write the descriptor back as a data source name.

        Options left at their default are omitted. Typed options come first,
        then the remaining ``params``, each group sorted by name.
        """
        dsn = []
        if self.user:
            dsn.append(self.user)
            if self.password:
                dsn.append(":" + self.password)
            dsn.append("@")
        if self.net:
            dsn.append(self.net)
            if self.addr:
                dsn.append(f"({self.addr})")
        dsn.append("/" + quote(self.dbname, safe="$&+:=@"))

        params = sorted(self._typed_options())
        params.extend(
            (name, quote_plus(self.params[name], safe=""))
            for name in sorted(self.params)
        )
        if params:
            dsn.append("?")
            dsn.append("&".join(f"{name}={value}" for name, value in params))
        return "".join(dsn)

    def _typed_options(self) -> List[Tuple[str, str]]:
        defaults = ConnectionDescriptor()
        options = []
        for name, attribute in _BOOL_OPTIONS.items():
            value = getattr(self, attribute)
            if value != getattr(defaults, attribute):
                options.append((name, "true" if value else "false"))
        for name, attribute in _DURATION_OPTIONS.items():
            value = getattr(self, attribute)
            if value > timedelta(0):
                options.append((name, format_duration(value)))

        if self.collation != DEFAULT_COLLATION:
            options.append(("collation", self.collation))
        if self.loc != "UTC":
            options.append(("loc", quote_plus(self.loc, safe="")))
        if self.max_allowed_packet != DEFAULT_MAX_ALLOWED_PACKET:
            options.append(("maxAllowedPacket", str(self.max_allowed_packet)))
        for name, value in (
            ("connectionAttributes", self.connection_attributes),
            ("serverPubKey", self.server_pub_key),
            ("tls", self.tls_config),
        ):
            if value:
                options.append((name, quote_plus(value, safe="")))
        return options


def _read_bool(name: str, value: str) -> bool:
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise DSNSyntaxError(f"invalid bool value for {name}: {value!r}")


def _query_unescape(name: str, value: str) -> str:
    try:
        return unescape(value, plus=True)
    except ValueError as exc:
        raise DSNSyntaxError(f"invalid value for {name}: {exc}") from exc


def _read_location(value: str) -> str:
    name = _query_unescape("loc", value)
    if name in ("", "UTC"):
        return "UTC"
    if name == "Local":
        return name
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        raise DSNSyntaxError(
            f"invalid value for loc: unknown time zone {name!r}"
        ) from exc
    return name


def _read_tls(value: str) -> str:
    if value in _TRUE_VALUES:
        return "true"
    if value in _FALSE_VALUES:
        return "false"
    lowered = value.lower()
    if lowered in ("skip-verify", "preferred"):
        return lowered
    return _query_unescape("tls", value)


def _parse_params(descriptor: ConnectionDescriptor, params: str) -> None:
    for pair in params.split("&"):
        name, equals, value = pair.partition("=")
        if not equals:
            continue

        if name in _BOOL_OPTIONS:
            setattr(descriptor, _BOOL_OPTIONS[name], _read_bool(name, value))
        elif name in _DURATION_OPTIONS:
            try:
                duration = parse_duration(value)
            except ValueError as exc:
                raise DSNSyntaxError(
                    f"invalid value for {name}: {exc}"
                ) from exc
            setattr(descriptor, _DURATION_OPTIONS[name], duration)
        elif name == "collation":
            descriptor.collation = value
        elif name == "loc":
            descriptor.loc = _read_location(value)
        elif name == "maxAllowedPacket":
            packet = parse_int(value)
            if packet is None:
                raise DSNSyntaxError(
                    f"invalid value for maxAllowedPacket: {value!r}"
                )
            descriptor.max_allowed_packet = packet
        elif name == "serverPubKey":
            descriptor.server_pub_key = _query_unescape(name, value)
        elif name == "connectionAttributes":
            descriptor.connection_attributes = _query_unescape(name, value)
        elif name == "tls":
            descriptor.tls_config = _read_tls(value)
        else:
            descriptor.params[name] = _query_unescape(name, value)


def _parse_prefix(descriptor: ConnectionDescriptor, prefix: str) -> None:
    # [user[:password]@][net[(addr)]]
    at = prefix.rfind("@")
    if at >= 0:
        user, _, password = prefix[:at].partition(":")
        descriptor.user = user
        descriptor.password = password

    network = prefix[at + 1 :]
    paren = network.find("(")
    if paren >= 0:
        if not network.endswith(")"):
            if ")" in network[paren + 1 :]:
                raise DSNSyntaxError(_ERR_UNESCAPED)
            raise DSNSyntaxError(_ERR_ADDR)
        descriptor.addr = network[paren + 1 : -1]
        network = network[:paren]
    descriptor.net = network


def _ensure_port(addr: str) -> str:
    try:
        split_host_port(addr)
    except ValueError:
        if addr.startswith("[") and addr.endswith("]"):
            addr = addr[1:-1]
        return join_host_port(addr, DEFAULT_PORT)
    return addr


def _normalize(descriptor: ConnectionDescriptor) -> ConnectionDescriptor:
    if (
        descriptor.interpolate_params
        and descriptor.collation in _UNSAFE_COLLATIONS
    ):
        raise DSNSyntaxError(_ERR_UNSAFE_COLLATION)

    if not descriptor.net:
        descriptor.net = "tcp"
    if not descriptor.addr:
        try:
            descriptor.addr = _DEFAULT_ADDRESSES[descriptor.net]
        except KeyError:
            raise DSNSyntaxError(
                f"default addr for network {descriptor.net!r} unknown"
            ) from None
    elif descriptor.net == "tcp":
        descriptor.addr = _ensure_port(descriptor.addr)
    return descriptor


def parse_dsn(dsn: str) -> ConnectionDescriptor:
    """Parse a MySQL data source name.

    The network defaults to ``tcp`` and the address to ``127.0.0.1:3306``
    (or ``/tmp/mysql.sock`` for ``unix``). A TCP address without a port gets
    port 3306. The database name is never defaulted.

    Raises:
        DSNSyntaxError: if ``dsn`` is malformed or holds an invalid
            parameter value.
    """
    descriptor = ConnectionDescriptor()

    # The password and the address may both contain a slash, the database
    # name may not.
    slash = dsn.rfind("/")
    if slash < 0:
        if dsn:
            raise DSNSyntaxError(_ERR_NO_SLASH)
        return _normalize(descriptor)

    if slash > 0:
        _parse_prefix(descriptor, dsn[:slash])

    dbname, question, params = dsn[slash + 1 :].partition("?")
    if question:
        _parse_params(descriptor, params)
    try:
        descriptor.dbname = unescape(dbname)
    except ValueError as exc:
        raise DSNSyntaxError(f"invalid dbname {dbname!r}: {exc}") from exc

    return _normalize(descriptor)
