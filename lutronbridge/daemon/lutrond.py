#!/usr/bin/env python3
# lutrond.py - MQTT connector for Lutron RadioRA2
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

import asyncio
import logging
import os
import ssl
import sys
from typing import Optional, TextIO, Tuple

# platform-specific event loop policy for Windows
if sys.platform == 'win32':
    from asyncio import set_event_loop_policy, WindowsSelectorEventLoopPolicy
    set_event_loop_policy(WindowsSelectorEventLoopPolicy())

from lutronbridge.daemon.cli import parse_cli_args, parse_gateway_address
from lutronbridge.daemon.mqtt_gateway import MqttClient, MqttEventSink
from lutronbridge.logging_config import VERBOSITY_ENV, configure_logging
from lutronbridge.protocol.bridge import LutronBridge

logger = logging.getLogger(__name__)


def read_broker_auth(fh: Optional[TextIO]) -> Tuple[Optional[str], Optional[str]]:
    """Reads a username and password from the first two lines of ``fh``."""
    if fh is None:
        return None, None
    with fh:
        lines = [line.strip() for line in fh.readlines()[:2]]
    if len(lines) != 2 or not lines[0]:
        raise ValueError('Broker auth file must contain a username and a password line')
    return lines[0], lines[1]


def build_tls_kwargs(option) -> Tuple[int, dict]:
    """Returns the broker port and the aiomqtt TLS arguments for ``option``."""
    if option.broker_disable_tls:
        logger.warning('Transport security disabled!')
        return option.broker_port or 1883, {}

    tls_context = (ssl.create_default_context(cafile=option.broker_ca)
                   if option.broker_ca else ssl.create_default_context())
    if option.broker_client_cert:
        tls_context.load_cert_chain(certfile=option.broker_client_cert, keyfile=option.broker_client_key)
    return option.broker_port or 8883, {'tls_context': tls_context}


async def _main() -> int:
    option = parse_cli_args()

    # Configure logging now that CLI options are known
    os.environ[VERBOSITY_ENV] = 'DEBUG' if option.debug else option.verbosity
    configure_logging('lutronbridge', log_file=option.log)

    loop = asyncio.get_running_loop()
    connection_lost_future = loop.create_future()
    bridge = None
    exit_code = 0

    try:
        # Validate client-cert/key pairing
        if bool(option.broker_client_cert) != bool(option.broker_client_key):
            raise SystemExit('To use client certificates, both --broker-client-cert (-k) and --broker-client-key (-K) must be specified.')

        username, password = read_broker_auth(option.broker_auth)
        host, port = parse_gateway_address(option.gateway)

        sink = MqttEventSink(option.topic_prefix)
        bridge = LutronBridge(
            sink=sink,
            publish_all=not option.no_publish_all,
            connect_timeout=option.connect_timeout or None,
            connection_lost_future=connection_lost_future,
        )

        if not await bridge.connect(host, port):
            logger.critical('Could not connect to Lutron gateway at %s:%s', host, port)
            return 1

        broker_port, tls_kwargs = build_tls_kwargs(option)
        mqtt_client = MqttClient(
            bridge, sink, option.broker_address, broker_port,
            option.broker_keepalive, tls_kwargs, username, password)

        async with mqtt_client:
            if option.scan > 0:
                await bridge.initialize_range(option.scan)
            await connection_lost_future
            logger.error('Lost connection to Lutron gateway')
            exit_code = 1
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info('Shutting down...')
    except Exception as e:
        logger.critical("Unhandled exception: %s", e, exc_info=True)
        exit_code = 1
    finally:
        logger.info('Cleaning up resources...')
        if bridge is not None:
            await bridge.disconnect()

        tasks = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
        for task in tasks:
            task.cancel()

        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info('Cleanup complete')

    return exit_code


def main():
    # work-around asyncio vs. setuptools console_scripts
    sys.exit(asyncio.run(_main()))


if __name__ == '__main__':
    main()
