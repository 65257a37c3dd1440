#!/usr/bin/env python
# lutronbridge/protocol/listener.py - Applies gateway monitoring to the cache
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

from asyncio import CancelledError, Task, sleep
import logging
from typing import Callable, List, Optional

from lutronbridge.common import POLL_INTERVAL
from lutronbridge.protocol.device_cache import DeviceCache
from lutronbridge.protocol.events import EventSink, LoggingEventSink
from lutronbridge.protocol.frame_parser import Frame, FrameParser
from lutronbridge.protocol.session import Session

logger = logging.getLogger(__name__)

__all__ = ['Listener', 'ChangeObserver']

ChangeObserver = Callable[[int], None]


class Listener:
    """
    Background loop that drains the session, parses zone level frames, stores
    them in the device cache and tells the event sink and observers.

    The loop sleeps ``poll_interval`` seconds between drains and runs until
    the session is no longer connected.  Errors in a single pass are logged
    and the loop carries on.
    """

    def __init__(
            self,
            session: Session,
            cache: DeviceCache,
            sink: Optional[EventSink] = None,
            parser: Optional[FrameParser] = None,
            poll_interval: float = POLL_INTERVAL,
            publish_all: bool = True):
        self._session = session
        self._cache = cache
        self._sink = sink if sink is not None else LoggingEventSink()
        self._parser = parser if parser is not None else FrameParser()
        self._poll_interval = poll_interval
        self._observers: List[ChangeObserver] = []
        self._task: Optional[Task] = None
        self.publish_all = publish_all

    @property
    def parser(self) -> FrameParser:
        return self._parser

    def subscribe(self, observer: ChangeObserver) -> None:
        """Registers ``observer(device_id)`` to be called on every change."""
        if observer not in self._observers:
            self._observers.append(observer)

    def unsubscribe(self, observer: ChangeObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def start(self) -> Task:
        if self._task is not None and not self._task.done():
            logger.debug('Stopping previous listener before starting a new one')
            self._task.cancel()
        self._parser.reset()
        self._task = self._session.start_worker(self.run(), name='lutron-listener')
        return self._task

    async def run(self) -> None:
        logger.info(f'Listener started, polling every {self._poll_interval}s')
        while self._session.is_connected():
            try:
                await self.poll()
                await sleep(self._poll_interval)
            except CancelledError:
                logger.info('Listener cancelled')
                raise
            except Exception as e:
                logger.error(f'Error in listener: {e}', exc_info=True)
                await sleep(self._poll_interval)

        # frames that arrived just before the gateway closed the connection
        try:
            await self.poll()
        except Exception as e:
            logger.error(f'Error in listener: {e}', exc_info=True)
        logger.info('Listener ended')

    async def poll(self) -> int:
        """
        Handles everything received since the last poll.

        :returns: Number of zone level frames applied.
        """
        data = await self._session.read_available()
        if not data:
            return 0

        frames = self._parser.feed(data)
        for frame in frames:
            self.apply(frame)
        return len(frames)

    def apply(self, frame: Frame) -> None:
        logger.debug(
            f'listener: device {frame.device_id} changed to {frame.level:.2f}')
        self._cache.update_level(frame.device_id, frame.level)

        if self.publish_all:
            try:
                self._sink.on_level_changed(frame.device_id, frame.level)
            except Exception:
                logger.exception(f'Event sink failed for device {frame.device_id}')

        for observer in list(self._observers):
            try:
                observer(frame.device_id)
            except Exception:
                logger.exception(f'Change observer {observer!r} failed')
