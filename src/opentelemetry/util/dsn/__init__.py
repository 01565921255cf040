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
Parse database connection strings into normalized settings and OpenTelemetry
semantic convention attributes.

Two dialects are understood, picked from the driver name:

* PostgreSQL (``postgres``, ``pgx``), both the URL form and the
  keyword/value form.
* MySQL (``mysql``), the ``user:password@tcp(host:port)/dbname`` form.

Any other driver name is reported as ``db.system=other_sql``.

Usage
-----

.. code-block:: python

    from opentelemetry import trace
    from opentelemetry.util.dsn import parse

    name, attributes = parse(
        "postgres", "postgres://alice@db.example.com:5433/mydb"
    )

    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span(
        name or "connect", attributes=attributes
    ):
        ...

Passwords never appear in the returned attributes.

Configuration
-------------

Settings missing from a PostgreSQL connection string are defaulted the way
libpq does it. The default host is the first existing unix socket directory
among ``/var/run/postgresql``, ``/private/tmp`` and ``/tmp``, or
``localhost``. Set ``OTEL_PYTHON_DSN_POSTGRES_SOCKET_DIRS`` to a
comma-separated list to change the candidates, or set
``OTEL_PYTHON_DSN_POSTGRES_HOST_PROBE_ENABLED=false`` to skip the
filesystem probe. A :class:`~opentelemetry.util.dsn.postgres.PostgresDefaults`
can also be passed explicitly.

API
---
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import NamedTuple, Optional

from opentelemetry.util.dsn import mysql, postgres
from opentelemetry.util.dsn.attributes import (
    AttributeSet,
    mysql_attributes,
    postgres_attributes,
    unidentified_attributes,
)
from opentelemetry.util.dsn.exceptions import DSNSyntaxError
from opentelemetry.util.dsn.mysql import ConnectionDescriptor
from opentelemetry.util.dsn.postgres import PostgresDefaults, Settings
from opentelemetry.util.dsn.version import __version__

_logger = logging.getLogger(__name__)


class ParsedDSN(NamedTuple):
    database_name: str
    attributes: AttributeSet


class Dialect(Enum):
    """Connection string grammars, one per database family."""

    MYSQL = "mysql"
    POSTGRES = "postgres"

    @classmethod
    def for_driver(cls, driver_name: str) -> Optional["Dialect"]:
        """Return the dialect spoken by ``driver_name``, if it is known."""
        return _DRIVER_DIALECTS.get(driver_name)

    def parse(
        self, dsn: str, defaults: Optional[PostgresDefaults] = None
    ) -> ParsedDSN:
        return _PARSERS[self](dsn, defaults)


def parse_postgres_settings(
    dsn: str, defaults: Optional[PostgresDefaults] = None
) -> Settings:
    """Parse a PostgreSQL connection string into normalized settings.

    See :func:`opentelemetry.util.dsn.postgres.parse_settings`.
    """
    return postgres.parse_settings(dsn, defaults)


def parse_mysql_descriptor(dsn: str) -> ConnectionDescriptor:
    """Parse a MySQL data source name.

    See :func:`opentelemetry.util.dsn.mysql.parse_dsn`.
    """
    return mysql.parse_dsn(dsn)


def _parse_postgres(
    dsn: str, defaults: Optional[PostgresDefaults]
) -> ParsedDSN:
    settings = parse_postgres_settings(dsn, defaults)
    return ParsedDSN(
        settings.get("database", ""), postgres_attributes(dsn, settings)
    )


# pylint: disable=unused-argument
def _parse_mysql(dsn: str, defaults: Optional[PostgresDefaults]) -> ParsedDSN:
    descriptor = parse_mysql_descriptor(dsn)
    return ParsedDSN(descriptor.dbname, mysql_attributes(descriptor))


_PARSERS = {
    Dialect.MYSQL: _parse_mysql,
    Dialect.POSTGRES: _parse_postgres,
}

_DRIVER_DIALECTS = {
    "mysql": Dialect.MYSQL,
    "postgres": Dialect.POSTGRES,
    "pgx": Dialect.POSTGRES,
}


def parse(
    driver_name: str,
    dsn: str,
    defaults: Optional[PostgresDefaults] = None,
) -> ParsedDSN:
    """Parse ``dsn`` according to the dialect of ``driver_name``.

    Args:
        driver_name: Name of the database driver, e.g. ``mysql``,
            ``postgres`` or ``pgx``.
        dsn: The connection string.
        defaults: PostgreSQL defaults, built from the environment when
            omitted. Ignored by other dialects.

    Returns:
        The database name, empty when the connection string names none, and
        the derived attributes.

    Raises:
        DSNSyntaxError: if ``dsn`` is malformed for its dialect.
    """
    dialect = Dialect.for_driver(driver_name)
    if dialect is None:
        _logger.debug("No connection string parser for driver %s", driver_name)
        return ParsedDSN("", unidentified_attributes())
    return dialect.parse(dsn, defaults)


__all__ = [
    "__version__",
    "ConnectionDescriptor",
    "Dialect",
    "DSNSyntaxError",
    "ParsedDSN",
    "PostgresDefaults",
    "Settings",
    "parse",
    "parse_mysql_descriptor",
    "parse_postgres_settings",
]
