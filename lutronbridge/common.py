#!/usr/bin/env python
# lutronbridge/common.py - Lutron integration protocol constants
# Copyright 2026 lutronbridge contributors
#
# This library is free software: you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This library is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public License
# along with this library.  If not, see <http://www.gnu.org/licenses/>.

from enum import IntEnum

__all__ = [
    'TELNET_PORT', 'END_LINE', 'LOGIN_USER', 'LOGIN_PASSWORD',
    'OUTPUT_EVENT_MARKER', 'OutputAction', 'DEFAULT_ON_LEVEL',
    'DEFAULT_SCAN_RANGE', 'LOGIN_SETTLE_DELAY', 'POLL_INTERVAL',
    'SCAN_DELAY', 'set_output_command', 'query_output_command',
    'GatewayConnectionError', 'MalformedFrameError',
]

# RadioRA2 main repeaters expose the integration protocol on the telnet port.
TELNET_PORT = 23

# Every line, in either direction, ends with CRLF.
END_LINE = b'\r\n'

# Default integration credentials, sent as two bare lines after connect.
LOGIN_USER = 'lutron'
LOGIN_PASSWORD = 'integration'

# Prefix of every monitoring line reporting on an output.
OUTPUT_EVENT_MARKER = b'~OUTPUT,'

# Level the gateway restores when an output is switched on without a level.
DEFAULT_ON_LEVEL = 100.0

# Outputs are conventionally numbered 0..90 on a RadioRA2 installation.
DEFAULT_SCAN_RANGE = 90

# Timings, in seconds.  The gateway never acknowledges login.
LOGIN_SETTLE_DELAY = 1.0
POLL_INTERVAL = 0.25
SCAN_DELAY = 0.05


class OutputAction(IntEnum):
    """
    Action numbers used in OUTPUT commands and monitoring lines.

    Only ZONE_LEVEL is acted on by the bridge, the rest are listed so that
    they can be named in logs.
    """
    ZONE_LEVEL = 1
    START_RAISING = 2
    START_LOWERING = 3
    STOP_RAISING_LOWERING = 4
    START_FLASHING = 5
    PULSE_TIME = 6


def set_output_command(device_id: int, level: float) -> str:
    """
    Builds the "set output level" command.  The level is not range checked,
    the gateway is authoritative.
    """
    return f'#OUTPUT,{int(device_id)},{OutputAction.ZONE_LEVEL:d},{float(level):.2f}'


def query_output_command(device_id: int) -> str:
    """Builds the "query output level" command."""
    return f'?OUTPUT,{int(device_id)},{OutputAction.ZONE_LEVEL:d}'


class GatewayConnectionError(ConnectionError):
    """Raised when writing to a gateway session that is not connected."""


class MalformedFrameError(ValueError):
    """Raised when a monitoring line cannot be parsed."""
