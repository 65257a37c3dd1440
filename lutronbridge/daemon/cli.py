"""Command-line interface definition for lutrond.

This module isolates all `argparse` boiler-plate so that the daemon's runtime
logic can be imported without side-effects and to make argument-parsing
unit-testable.
"""
from __future__ import annotations

import argparse
from argparse import FileType, ArgumentParser
from typing import List, Optional, Text, Tuple

from lutronbridge.common import DEFAULT_SCAN_RANGE, TELNET_PORT
from lutronbridge.daemon.topics import DEFAULT_TOPIC_PREFIX


def build_arg_parser() -> ArgumentParser:
    """Return an `ArgumentParser` pre-configured with all lutrond options."""
    parser = ArgumentParser(
        'lutrond',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument('-d', '--debug', action='store_true', help='Enable debug logging')

    # Logging options -----------------------------------------------------
    group = parser.add_argument_group('Logging options')
    group.add_argument('-l', '--log-file', dest='log', default=None, help='Destination to write logs')
    group.add_argument('-v', '--verbosity', dest='verbosity', default='INFO', choices=('CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG'), help='Verbosity to emit')

    # MQTT options --------------------------------------------------------
    group = parser.add_argument_group('MQTT options')
    group.add_argument('-b', '--broker-address', required=True, help='Address of the MQTT broker')
    group.add_argument('-p', '--broker-port', type=int, default=0, help='Port to use; 0 ⇒ auto')
    group.add_argument('--broker-keepalive', type=int, default=60, metavar='SECONDS', help='MQTT keep-alive')
    group.add_argument('--broker-disable-tls', action='store_true', help='Disable TLS (insecure)')
    group.add_argument('-A', '--broker-auth', type=FileType('rt'), help='File containing username and password (2 lines)')
    group.add_argument('-c', '--broker-ca', help='Path to directory containing CA certificates')
    group.add_argument('-k', '--broker-client-cert', help='PEM client certificate')
    group.add_argument('-K', '--broker-client-key', help='PEM client key (private)')
    group.add_argument('--topic-prefix', default=DEFAULT_TOPIC_PREFIX, help='Prefix for all MQTT topics')

    # Gateway connection --------------------------------------------------
    group = parser.add_argument_group('Lutron gateway connection')
    group.add_argument('-g', '--gateway', dest='gateway', required=True, metavar='ADDR[:PORT]', help=f'IP address and telnet port of the RadioRA2 main repeater (port defaults to {TELNET_PORT})')
    group.add_argument('--connect-timeout', type=float, default=10.0, metavar='SECONDS', help='Give up connecting after this long (0 to wait forever)')

    # Bridge behaviour ----------------------------------------------------
    group = parser.add_argument_group('Bridge options')
    group.add_argument('-s', '--scan', metavar='COUNT', type=int, default=DEFAULT_SCAN_RANGE, help='Query the level of outputs 0 to COUNT-1 after connecting (0 to disable)')
    group.add_argument('--no-publish-all', dest='no_publish_all', action='store_true', default=False, help='Do not publish an event for every output change')

    return parser


def parse_gateway_address(value: Text) -> Tuple[Text, int]:
    """Split ``ADDR[:PORT]`` into host and port, defaulting to the telnet port."""
    host, sep, port = value.rpartition(':')
    if not sep:
        return value, TELNET_PORT
    if not host:
        raise ValueError(f'Missing gateway address in {value!r}')
    return host, int(port)


def parse_cli_args(argv: Optional[List[str]] = None):
    """Parse *argv* (or *sys.argv* if None) and return the populated Namespace."""
    parser = build_arg_parser()
    return parser.parse_args(argv)
