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

from enum import Enum


class NetTransportValues(Enum):
    """Values of the ``net.transport`` attribute emitted for a connection.

    ``UNIX`` was dropped from later versions of the semantic conventions but
    is still what SQL client instrumentations report for socket connections.
    """

    IP_TCP = "ip_tcp"
    UNIX = "unix"
    PIPE = "pipe"
    INPROC = "inproc"
