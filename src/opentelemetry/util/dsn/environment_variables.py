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
Comma-separated list of directories probed, in order, for a PostgreSQL unix
socket when a DSN does not name a host. Replaces the built-in candidates.
"""
OTEL_PYTHON_DSN_POSTGRES_SOCKET_DIRS = "OTEL_PYTHON_DSN_POSTGRES_SOCKET_DIRS"

"""
Set to ``false`` to skip probing the filesystem for a PostgreSQL socket
directory. The default host is then ``localhost``. Defaults to ``true``.
"""
OTEL_PYTHON_DSN_POSTGRES_HOST_PROBE_ENABLED = (
    "OTEL_PYTHON_DSN_POSTGRES_HOST_PROBE_ENABLED"
)
