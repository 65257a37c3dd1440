#!/usr/bin/env python
# lutronbridge/protocol/device_cache.py - Last known state of gateway outputs
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

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from lutronbridge.common import DEFAULT_ON_LEVEL

logger = logging.getLogger(__name__)

__all__ = ['Device', 'DeviceCache']


@dataclass(frozen=True)
class Device:
    """
    An output (load) on the gateway.

    :param device_id: Integration ID of the output.
    :param current_level: Last observed or commanded level, 0.00 - 100.00.
    :param on_level: Level to restore when the output is turned on.
    """
    device_id: int
    current_level: float = 0.0
    on_level: float = DEFAULT_ON_LEVEL


class DeviceCache:
    """
    Maps integration ID to :class:`Device`.

    Entries are only ever replaced, never removed.  All access goes through a
    single lock, as the listener updates the cache while commands read it.
    Iteration order is insertion order of the first time an ID was seen.
    """

    def __init__(self, default_on_level: float = DEFAULT_ON_LEVEL):
        self._devices: Dict[int, Device] = {}
        self._lock = threading.RLock()
        self.default_on_level = default_on_level

    def upsert(self, device: Device) -> None:
        with self._lock:
            self._devices[device.device_id] = device

    add = upsert
    update = upsert

    def update_level(self, device_id: int, level: float) -> Device:
        """
        Records a new level for an output, keeping its on level if it is
        already known.

        :returns: The stored device.
        """
        with self._lock:
            previous = self._devices.get(device_id)
            on_level = (previous.on_level if previous is not None
                        else self.default_on_level)
            device = Device(device_id, level, on_level)
            self._devices[device_id] = device
        logger.debug(f'cache: device {device_id} now at {level:.2f}')
        return device

    def get(self, device_id: int) -> Optional[Device]:
        with self._lock:
            return self._devices.get(device_id)

    def exists(self, device_id: int) -> bool:
        with self._lock:
            return device_id in self._devices

    def ids(self) -> List[int]:
        with self._lock:
            return list(self._devices)

    def snapshot(self) -> List[Device]:
        """Returns a copy of all entries, in cache iteration order."""
        with self._lock:
            return list(self._devices.values())

    def __contains__(self, device_id: int) -> bool:
        return self.exists(device_id)

    def __iter__(self) -> Iterator[Device]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._devices)
