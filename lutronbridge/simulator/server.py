#!/usr/bin/env python3
"""
Lutron Simulator Server

This module implements a TCP server that mimics the integration telnet port of
a RadioRA2 main repeater.  It asks for a login, then accepts ``#OUTPUT`` and
``?OUTPUT`` commands and reports output levels as ``~OUTPUT`` lines.
"""

import asyncio
import json
import logging
import os
import re
import signal
from asyncio import StreamReader, StreamWriter
from typing import List, Optional

from lutronbridge.simulator.state import GatewayState

logger = logging.getLogger(__name__)

DEFAULT_PORT = int(os.environ.get('SIMULATOR_PORT', 10023))
DEFAULT_HOST = os.environ.get('SIMULATOR_HOST', '127.0.0.1')

END_LINE = b'\r\n'
LOGIN_PROMPT = b'login: '
PASSWORD_PROMPT = b'password: '
PROMPT = b'GNET> '

# Integration protocol error numbers
ERROR_PARAMETER_COUNT = 1
ERROR_OBJECT_DOES_NOT_EXIST = 2
ERROR_INVALID_ACTION = 3
ERROR_OUT_OF_RANGE = 4
ERROR_MALFORMED = 5
ERROR_UNSUPPORTED = 6

OUTPUT_COMMAND_PATTERN = re.compile(r'^([#?])OUTPUT,(.*)$', re.IGNORECASE)


def output_event(output_id: int, level: float) -> bytes:
    return f'~OUTPUT,{output_id},1,{level:.2f}'.encode('ascii') + END_LINE


def error_event(code: int) -> bytes:
    return f'~ERROR,{code}'.encode('ascii') + END_LINE


class LutronSimulatorServer:
    """
    A TCP server that simulates a Lutron RadioRA2 gateway.
    """

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT,
                 config_path: Optional[str] = None):
        """
        Initialize the simulator server.

        Args:
            host: The host address to bind to
            port: The port to listen on, 0 picks a free port
            config_path: Path to a JSON configuration file
        """
        self.host = host
        self.port = port
        self.server: Optional[asyncio.AbstractServer] = None
        self.clients: List[StreamWriter] = []
        self.state = GatewayState()

        if config_path:
            self.load_configuration(config_path)

    def load_configuration(self, config_path: str) -> None:
        """
        Load configuration from a JSON file.
        """
        try:
            with open(config_path, 'r') as f:
                config = json.load(f)
        except FileNotFoundError:
            logger.warning(f"Configuration file not found: {config_path}")
            logger.info("Using default configuration")
            return
        except (OSError, ValueError) as e:
            logger.error(f"Error loading configuration: {e}")
            return

        logger.info(f"Loading configuration from {config_path}")
        self.state.apply_configuration(config)

    async def start(self) -> None:
        """
        Start listening.  Returns once the socket is bound.
        """
        self.server = await asyncio.start_server(self.handle_client, self.host, self.port)
        self.port = self.server.sockets[0].getsockname()[1]
        logger.info(f"Lutron simulator listening on {self.host}:{self.port}")

    async def serve_forever(self) -> None:
        """
        Start the server and run until shut down by a signal.
        """
        await self.start()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, lambda: asyncio.create_task(self.shutdown()))
            except NotImplementedError:
                # Windows
                pass

        try:
            await self.server.serve_forever()
        except asyncio.CancelledError:
            logger.info("Server stopped")

    async def handle_client(self, reader: StreamReader, writer: StreamWriter) -> None:
        """
        Handle a new client connection: login, then one command per line.
        """
        addr = writer.get_extra_info('peername')
        logger.info(f"New client connection from {addr}")

        try:
            if not await self._login(reader, writer):
                logger.info(f"Client {addr} failed to log in")
                return

            self.clients.append(writer)
            writer.write(PROMPT)
            await writer.drain()

            while True:
                line = await reader.readline()
                if not line:
                    break
                command = line.decode('ascii', errors='replace').strip()
                if not command:
                    writer.write(PROMPT)
                    await writer.drain()
                    continue
                await self.process_command(command, writer)
        except (ConnectionError, asyncio.IncompleteReadError) as e:
            logger.info(f"Client {addr} connection error: {e}")
        finally:
            if writer in self.clients:
                self.clients.remove(writer)
            logger.info(f"Client {addr} disconnected")
            writer.close()
            try:
                await writer.wait_closed()
            except ConnectionError:
                pass

    async def _login(self, reader: StreamReader, writer: StreamWriter) -> bool:
        writer.write(LOGIN_PROMPT)
        await writer.drain()
        username = (await reader.readline()).decode('ascii', errors='replace').strip()

        writer.write(PASSWORD_PROMPT)
        await writer.drain()
        password = (await reader.readline()).decode('ascii', errors='replace').strip()

        if username != self.state.username or password != self.state.password:
            writer.write(b'bad login' + END_LINE)
            await writer.drain()
            return False
        return True

    async def process_command(self, command: str, writer: StreamWriter) -> None:
        """
        Process one command line from a client and send any replies.
        """
        logger.debug(f"Received command: {command!r}")
        self.state.add_command_to_history(command)

        match = OUTPUT_COMMAND_PATTERN.match(command)
        if not match:
            writer.write(error_event(ERROR_UNSUPPORTED))
        else:
            operation, args = match.groups()
            fields = [f.strip() for f in args.split(',')]
            if operation == '#':
                reply = self._set_output(fields)
            else:
                reply = self._query_output(fields)
            if reply:
                writer.write(reply)

        writer.write(PROMPT)
        await writer.drain()

    def _set_output(self, fields: List[str]) -> Optional[bytes]:
        if len(fields) < 3:
            return error_event(ERROR_PARAMETER_COUNT)
        try:
            output_id, action, level = int(fields[0]), int(fields[1]), float(fields[2])
        except ValueError:
            return error_event(ERROR_MALFORMED)
        if action != 1:
            return error_event(ERROR_INVALID_ACTION)
        if not 0.0 <= level <= 100.0:
            return error_event(ERROR_OUT_OF_RANGE)
        if not self.state.set_level(output_id, level):
            return error_event(ERROR_OBJECT_DOES_NOT_EXIST)

        # Every monitoring client hears about the change, including the sender.
        self.broadcast(output_event(output_id, level))
        return None

    def _query_output(self, fields: List[str]) -> Optional[bytes]:
        if len(fields) < 2:
            return error_event(ERROR_PARAMETER_COUNT)
        try:
            output_id, action = int(fields[0]), int(fields[1])
        except ValueError:
            return error_event(ERROR_MALFORMED)
        if action != 1:
            return error_event(ERROR_INVALID_ACTION)
        level = self.state.get_level(output_id)
        if level is None:
            return error_event(ERROR_OBJECT_DOES_NOT_EXIST)
        return output_event(output_id, level)

    def broadcast(self, data: bytes) -> None:
        for client in list(self.clients):
            if not client.is_closing():
                client.write(data)

    def press(self, output_id: int, level: float) -> bool:
        """
        Simulate a keypad or dimmer changing an output locally.
        """
        if not self.state.set_level(output_id, level):
            return False
        self.broadcast(output_event(output_id, level))
        return True

    async def shutdown(self) -> None:
        """
        Gracefully shut down the server.
        """
        logger.info("Shutting down Lutron simulator server...")

        for client in list(self.clients):
            client.close()

        if self.server:
            self.server.close()
            await self.server.wait_closed()
            self.server = None

        logger.info("Server shutdown complete")
