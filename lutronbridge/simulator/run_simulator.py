#!/usr/bin/env python3
"""
Lutron Simulator Runner

A simple script to run the Lutron gateway simulator with command-line options.
"""

import argparse
import asyncio
import os

from lutronbridge.logging_config import VERBOSITY_ENV, configure_logging
from lutronbridge.simulator.server import (
    DEFAULT_HOST, DEFAULT_PORT, LutronSimulatorServer)


def parse_args(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description='Lutron RadioRA2 gateway simulator')

    parser.add_argument(
        '--port', '-p',
        type=int,
        default=DEFAULT_PORT,
        help=f'TCP port to listen on (default: {DEFAULT_PORT})'
    )

    parser.add_argument(
        '--host', '-H',
        type=str,
        default=DEFAULT_HOST,
        help=f'Host address to bind to (default: {DEFAULT_HOST})'
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        default=os.environ.get('SIMULATOR_CONFIG'),
        help='Path to JSON configuration file'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    return parser.parse_args(argv)


async def main(argv=None):
    """Main entry point"""
    args = parse_args(argv)

    if args.verbose:
        os.environ[VERBOSITY_ENV] = 'DEBUG'
    configure_logging('lutronbridge')

    server = LutronSimulatorServer(
        host=args.host,
        port=args.port,
        config_path=args.config
    )

    try:
        await server.serve_forever()
    finally:
        await server.shutdown()


def cli():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nExited by user")


if __name__ == "__main__":
    cli()
