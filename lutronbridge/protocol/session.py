#!/usr/bin/env python
# lutronbridge/protocol/session.py - asyncio Protocol for the gateway connection
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

import asyncio
import contextlib
from asyncio import (CancelledError, Future, Lock, Protocol, Task,
                     create_task, current_task, get_running_loop, sleep)
from asyncio.transports import WriteTransport
from enum import Enum
import logging
from typing import Coroutine, List, Optional, Text

from lutronbridge.common import (
    END_LINE, LOGIN_PASSWORD, LOGIN_SETTLE_DELAY, LOGIN_USER, TELNET_PORT,
    GatewayConnectionError)

logger = logging.getLogger(__name__)

__all__ = ['Session', 'SessionState']


class SessionState(Enum):
    DISCONNECTED = 'disconnected'
    CONNECTING = 'connecting'
    AUTHENTICATING = 'authenticating'
    CONNECTED = 'connected'


class Session(Protocol):
    """
    Owns the single telnet connection to a Lutron gateway.

    Every write and every drain of the receive buffer holds one lock, so lines
    from concurrent writers never interleave on the wire.  The lock is only
    held around the I/O itself.

    Background tasks that live as long as the connection (the listener) are
    started with :meth:`start_worker`, and are cancelled and awaited by
    :meth:`disconnect`.
    """

    def __init__(
            self,
            settle_delay: float = LOGIN_SETTLE_DELAY,
            connect_timeout: Optional[float] = None,
            connection_lost_future: Optional[Future] = None):
        self._transport = None  # type: Optional[WriteTransport]
        self._recv_buffer = bytearray()
        self._io_lock = Lock()
        self._state = SessionState.DISCONNECTED
        self._workers: List[Task] = []
        self._settle_delay = settle_delay
        self._connect_timeout = connect_timeout
        self._connection_lost_future = connection_lost_future

    @property
    def state(self) -> SessionState:
        return self._state

    def is_connected(self) -> bool:
        transport = self._transport
        return (self._state is SessionState.CONNECTED and
                transport is not None and not transport.is_closing())

    # asyncio Protocol callbacks
    def connection_made(self, transport: WriteTransport) -> None:
        logger.info('Connection established to Lutron gateway')
        self._transport = transport
        self._recv_buffer.clear()

    def connection_lost(self, exc: Optional[Exception]) -> None:
        if self._state is not SessionState.DISCONNECTED:
            logger.warning(f'Connection to Lutron gateway lost: {exc}')
        self._transport = None
        self._state = SessionState.DISCONNECTED

        if self._connection_lost_future and not self._connection_lost_future.done():
            self._connection_lost_future.set_result(True)

    def data_received(self, data: bytes) -> None:
        # Runs on the event loop, so it never overlaps the drain in
        # read_available.
        logger.debug(f'recv: {data!r}')
        self._recv_buffer.extend(data)

    # lifecycle
    async def connect(self, host: Text, port: int = TELNET_PORT) -> bool:
        """
        Opens the connection and logs in.

        The gateway does not acknowledge the login, so after sending the
        credentials this waits for the settle delay and then only checks that
        the connection is still up.

        :returns: True when connected, False if the connection failed.
        """
        if self._state is not SessionState.DISCONNECTED:
            logger.warning(f'connect: session already {self._state.value}')
            return self.is_connected()

        logger.info(f'Connecting to Lutron gateway at {host}:{port}...')
        self._state = SessionState.CONNECTING
        loop = get_running_loop()
        try:
            connection = loop.create_connection(lambda: self, host, port)
            if self._connect_timeout:
                await asyncio.wait_for(connection, self._connect_timeout)
            else:
                await connection
        except (OSError, asyncio.TimeoutError) as e:
            logger.error(f'Connection to {host}:{port} failed: {e}')
            await self._close()
            return False

        self._state = SessionState.AUTHENTICATING
        try:
            await self._send_line(LOGIN_USER)
            await self._send_line(LOGIN_PASSWORD)
        except GatewayConnectionError as e:
            logger.error(f'Login to {host}:{port} failed: {e}')
            await self._close()
            return False

        await sleep(self._settle_delay)

        if self._transport is None or self._transport.is_closing():
            logger.error(f'Lutron gateway at {host}:{port} closed the connection during login')
            await self._close()
            return False

        self._state = SessionState.CONNECTED
        logger.info('Logged in to Lutron gateway')
        return True

    async def disconnect(self) -> None:
        """
        Closes the connection and stops all workers.  Safe to call more than
        once, or when never connected.
        """
        if self._state is not SessionState.DISCONNECTED or self._transport:
            logger.info('Disconnecting from Lutron gateway')
        await self._close()

        workers, self._workers = self._workers, []
        me = current_task()
        for task in workers:
            if task is not me and not task.done():
                task.cancel()
        for task in workers:
            if task is me:
                continue
            with contextlib.suppress(CancelledError):
                await task

    async def _close(self) -> None:
        self._state = SessionState.DISCONNECTED
        transport = self._transport
        self._transport = None
        if transport is not None:
            async with self._io_lock:
                transport.close()
        self._recv_buffer.clear()

    def start_worker(self, coro: Coroutine, name: Optional[str] = None) -> Task:
        """Runs ``coro`` as a task that is stopped by :meth:`disconnect`."""
        task = create_task(coro, name=name)
        self._workers = [t for t in self._workers if not t.done()]
        self._workers.append(task)
        return task

    # I/O
    async def write(self, line: Text) -> None:
        """
        Sends a single protocol line, adding the line terminator.

        :raises GatewayConnectionError: if the session is not connected.
        """
        if not self.is_connected():
            logger.error(f'Cannot send {line!r} - not connected')
            raise GatewayConnectionError('not connected to Lutron gateway')
        await self._send_line(line)

    async def _send_line(self, line: Text) -> None:
        data = line.rstrip('\r\n').encode('ascii', errors='replace') + END_LINE
        async with self._io_lock:
            transport = self._transport
            if transport is None or transport.is_closing():
                raise GatewayConnectionError('transport not connected')
            transport.write(data)
        logger.debug(f'send: {data!r}')

    async def read_available(self) -> bytes:
        """
        Takes everything received since the last call, without waiting for
        more.  Returns ``b''`` when nothing is buffered.
        """
        async with self._io_lock:
            if not self._recv_buffer:
                return b''
            data = bytes(self._recv_buffer)
            self._recv_buffer.clear()
        return data
