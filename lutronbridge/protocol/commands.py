#!/usr/bin/env python
# lutronbridge/protocol/commands.py - Outbound OUTPUT commands
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

from __future__ import annotations

from asyncio import sleep
import logging
from typing import Iterator, Optional, Text, Tuple

from lutronbridge.common import (
    SCAN_DELAY, GatewayConnectionError, query_output_command,
    set_output_command)
from lutronbridge.protocol.device_cache import DeviceCache
from lutronbridge.protocol.events import EventSink, LoggingEventSink
from lutronbridge.protocol.session import Session

logger = logging.getLogger(__name__)

__all__ = ['CommandTranslator', 'parse_bulk_state', 'format_bulk_state']

_DEVICE_TOKEN = 'D='
_LEVEL_TOKEN = 'L='
_PAIR_SEPARATOR = '&'
_LINE_END = '\r\n'


def parse_bulk_state(states: Text) -> Iterator[Tuple[int, float]]:
    """
    Yields ``(device_id, level)`` for each ``D=<id>&L=<level>`` line of
    ``states``.

    Parsing stops quietly at the first entry that is malformed or not
    terminated by CRLF.
    """
    start = 0
    while start < len(states):
        # each entry must begin exactly where the previous one ended
        if not states.startswith(_DEVICE_TOKEN, start):
            logger.debug(f'bulk state: stopping at {states[start:]!r}')
            return
        start += len(_DEVICE_TOKEN)

        end = states.find(_PAIR_SEPARATOR, start)
        if end == -1:
            return
        device = states[start:end]

        start = end + len(_PAIR_SEPARATOR)
        if not states.startswith(_LEVEL_TOKEN, start):
            logger.debug(f'bulk state: stopping at {states[start:]!r}')
            return
        start += len(_LEVEL_TOKEN)

        end = states.find(_LINE_END, start)
        if end == -1:
            return
        level = states[start:end]

        try:
            entry = int(device), float(level)
        except ValueError:
            logger.debug(f'bulk state: stopping at {states[start:]!r}')
            return
        yield entry

        start = end + len(_LINE_END)


def format_bulk_state(cache: DeviceCache) -> str:
    """Serialises the cache as ``D=<id>&L=<level>`` lines."""
    return ''.join(
        f'{_DEVICE_TOKEN}{d.device_id:d}{_PAIR_SEPARATOR}'
        f'{_LEVEL_TOKEN}{d.current_level:.0f}{_LINE_END}'
        for d in cache.snapshot())


class CommandTranslator:
    """
    Turns requests into protocol lines on a :class:`Session`.

    Every operation returns True if its line(s) were written and False if the
    session was not connected.  Nothing is retried.  Levels are not range
    checked.
    """

    def __init__(
            self,
            session: Session,
            cache: DeviceCache,
            sink: Optional[EventSink] = None,
            scan_delay: float = SCAN_DELAY):
        self._session = session
        self._cache = cache
        self._sink = sink if sink is not None else LoggingEventSink()
        self._scan_delay = scan_delay

    async def send_raw(self, command: Text) -> bool:
        """Sends an arbitrary protocol line."""
        try:
            await self._session.write(command)
        except GatewayConnectionError:
            return False
        logger.info(f'sent command {command!r}')
        return True

    async def set_level(self, device_id: int, level: float) -> bool:
        return await self.send_raw(set_output_command(device_id, level))

    async def query_level(self, device_id: int) -> bool:
        """
        Asks the gateway for an output's level.  The answer arrives later as a
        monitoring line and lands in the device cache.
        """
        return await self.send_raw(query_output_command(device_id))

    async def set_dimmer(self, command: Text) -> bool:
        """
        Text form of :meth:`set_level`: ``"<id>,<level>"``, eg: ``"5,100"``.
        """
        device, sep, level = command.partition(',')
        if not sep:
            logger.error(f'set_dimmer: expected "<id>,<level>", got {command!r}')
            return False
        try:
            device_id, value = int(device), float(level)
        except ValueError:
            logger.error(f'set_dimmer: bad device or level in {command!r}')
            return False
        return await self.set_level(device_id, value)

    async def get_dimmer(self, command: Text) -> bool:
        """Text form of :meth:`query_level`: ``"<id>"``."""
        try:
            device_id = int(command)
        except ValueError:
            logger.error(f'get_dimmer: bad device {command!r}')
            return False
        return await self.query_level(device_id)

    async def initialize_range(self, max_id: int) -> bool:
        """
        Queries every output ID from 0 up to (not including) ``max_id``,
        pausing between each so the gateway's input buffer is not overrun.

        The protocol has no way to list outputs, so this is how the cache
        gets primed.  IDs that do not exist simply never answer.
        """
        if max_id < 0:
            raise ValueError(f'max_id must not be negative ({max_id})')

        logger.info(f'Querying levels of outputs 0 to {max_id - 1}')
        for device_id in range(max_id):
            if not await self.query_level(device_id):
                logger.warning(f'Output scan stopped at {device_id}, not connected')
                return False
            await sleep(self._scan_delay)
        return True

    async def apply_bulk_state(self, states: Text) -> bool:
        """
        Sets the level of every output listed in ``states``
        (``D=<id>&L=<level>`` lines), in order.

        :returns: False if any command could not be sent.
        """
        ok = True
        for device_id, level in parse_bulk_state(states):
            if not await self.set_level(device_id, level):
                ok = False
        return ok

    def describe_all_devices(self) -> str:
        """
        Returns the state of every cached output as ``D=<id>&L=<level>``
        lines, and sends the same string to the event sink.
        """
        states = format_bulk_state(self._cache)
        try:
            self._sink.on_all_devices_state(states)
        except Exception:
            logger.exception('Event sink failed for all devices state')
        logger.debug(f'all devices: {states!r}')
        return states
