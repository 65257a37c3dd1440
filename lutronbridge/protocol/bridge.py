#!/usr/bin/env python
# lutronbridge/protocol/bridge.py - Public face of the Lutron bridge
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

from asyncio import Future, run, sleep
import logging
from typing import Optional, Text, Tuple

from lutronbridge.common import (
    DEFAULT_ON_LEVEL, LOGIN_SETTLE_DELAY, POLL_INTERVAL, SCAN_DELAY,
    TELNET_PORT)
from lutronbridge.protocol.commands import CommandTranslator
from lutronbridge.protocol.device_cache import Device, DeviceCache
from lutronbridge.protocol.events import EventSink, LoggingEventSink
from lutronbridge.protocol.listener import ChangeObserver, Listener
from lutronbridge.protocol.session import Session

logger = logging.getLogger(__name__)

__all__ = ['LutronBridge']


class LutronBridge:
    """
    Pass-through bridge to a Lutron RadioRA2 gateway.

    Keeps one telnet session open, tracks the level of every output the
    gateway reports on, and forwards changes to an :class:`EventSink` and to
    subscribed observers.  Commands can be sent from any number of tasks.

    Can be used as an async context manager, which disconnects on exit.
    """

    def __init__(
            self,
            sink: Optional[EventSink] = None,
            settle_delay: float = LOGIN_SETTLE_DELAY,
            poll_interval: float = POLL_INTERVAL,
            scan_delay: float = SCAN_DELAY,
            default_on_level: float = DEFAULT_ON_LEVEL,
            publish_all: bool = True,
            connect_timeout: Optional[float] = None,
            connection_lost_future: Optional[Future] = None):
        self.sink = sink if sink is not None else LoggingEventSink()
        self.cache = DeviceCache(default_on_level)
        self.session = Session(
            settle_delay=settle_delay,
            connect_timeout=connect_timeout,
            connection_lost_future=connection_lost_future)
        self.listener = Listener(
            self.session, self.cache, self.sink,
            poll_interval=poll_interval, publish_all=publish_all)
        self.commands = CommandTranslator(
            self.session, self.cache, self.sink, scan_delay=scan_delay)
        self._settle_delay = settle_delay

    async def __aenter__(self) -> 'LutronBridge':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    # connection
    async def connect(self, host: Text, port: int = TELNET_PORT,
                      scan: int = 0) -> bool:
        """
        Connects and logs in to the gateway, then starts the listener.

        :param scan: If more than 0, query the levels of outputs 0 to
                     ``scan - 1`` once the listener is running.
        :returns: True when connected.
        """
        if not await self.session.connect(host, port):
            return False

        self.listener.start()

        if scan > 0:
            # give the gateway a moment before flooding it with queries
            await sleep(self._settle_delay)
            await self.commands.initialize_range(scan)
        return True

    async def disconnect(self) -> None:
        await self.session.disconnect()

    def is_connected(self) -> bool:
        return self.session.is_connected()

    # change notification
    def subscribe(self, observer: ChangeObserver) -> None:
        self.listener.subscribe(observer)

    def unsubscribe(self, observer: ChangeObserver) -> None:
        self.listener.unsubscribe(observer)

    @property
    def publish_all(self) -> bool:
        return self.listener.publish_all

    @publish_all.setter
    def publish_all(self, value: bool) -> None:
        self.listener.publish_all = bool(value)

    # commands
    async def set_level(self, device_id: int, level: float) -> bool:
        return await self.commands.set_level(device_id, level)

    async def query_level(self, device_id: int) -> bool:
        return await self.commands.query_level(device_id)

    async def send_raw(self, command: Text) -> bool:
        return await self.commands.send_raw(command)

    async def set_dimmer(self, command: Text) -> bool:
        return await self.commands.set_dimmer(command)

    async def get_dimmer(self, command: Text) -> bool:
        return await self.commands.get_dimmer(command)

    async def initialize_range(self, max_id: int) -> bool:
        return await self.commands.initialize_range(max_id)

    async def apply_bulk_state(self, states: Text) -> bool:
        return await self.commands.apply_bulk_state(states)

    def describe_all_devices(self) -> str:
        return self.commands.describe_all_devices()

    # device cache
    def get_cached_level(self, device_id: int) -> Tuple[Optional[Device], bool]:
        """
        :returns: ``(device, True)`` if the output has been seen, otherwise
                  ``(None, False)``.
        """
        device = self.cache.get(device_id)
        return device, device is not None

    def add_device(self, device: Device) -> None:
        self.cache.add(device)

    def update_device(self, device: Device) -> None:
        self.cache.update(device)

    def get_device(self, device_id: int) -> Optional[Device]:
        return self.cache.get(device_id)

    def device_exists(self, device_id: int) -> bool:
        return self.cache.exists(device_id)


async def main():
    """
    Test program for LutronBridge.  Prints output changes until interrupted.

    Imports are included inside of this method in order to avoid loading
    unneeded dependencies.
    """
    from argparse import ArgumentParser

    parser = ArgumentParser(description="""\
        Test program that displays output level changes from a Lutron
        RadioRA2 gateway.
    """)
    parser.add_argument(
        '-g', '--gateway', required=True, metavar='ADDR[:PORT]',
        help='IP address and telnet port of the gateway (eg: -g 192.0.2.1)')
    parser.add_argument(
        '-s', '--scan', type=int, default=0, metavar='COUNT',
        help='Query outputs 0 to COUNT-1 after connecting')

    option = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG)
    addr, _, port = option.gateway.partition(':')
    bridge = LutronBridge()
    if not await bridge.connect(addr, int(port or TELNET_PORT), scan=option.scan):
        return
    async with bridge:
        while bridge.is_connected():
            await sleep(1)


if __name__ == '__main__':
    run(main())
