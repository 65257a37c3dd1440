# lutronbridge/daemon/topics.py
"""MQTT topic helpers for lutrond.

Notifications are published as ``device/changed`` and ``alldevices/state``
under a configurable prefix, and each bridge operation gets its own command
topic.
"""
from __future__ import annotations

from typing import List, Text

from lutronbridge.protocol.events import (
    ALL_DEVICES_STATE_EVENT, DEVICE_CHANGED_EVENT)

DEFAULT_TOPIC_PREFIX = 'lutron'

# Command topic fragments
_DEVICE_SET = 'device/set'
_DEVICE_GET = 'device/get'
_ALL_DEVICES_SET = 'alldevices/set'
_ALL_DEVICES_GET = 'alldevices/get'
_COMMAND = 'command'
_STATUS = 'status'

__all__ = [
    'DEFAULT_TOPIC_PREFIX', 'device_changed_topic', 'all_devices_state_topic',
    'device_set_topic', 'device_get_topic', 'all_devices_set_topic',
    'all_devices_get_topic', 'command_topic', 'status_topic',
    'command_topics',
]


def _topic(prefix: Text, suffix: Text) -> Text:
    prefix = prefix.rstrip('/')
    return f'{prefix}/{suffix}' if prefix else suffix


def device_changed_topic(prefix: Text = DEFAULT_TOPIC_PREFIX) -> Text:
    """Where ``device=<id>&level=<level>`` change events are published."""
    return _topic(prefix, DEVICE_CHANGED_EVENT)


def all_devices_state_topic(prefix: Text = DEFAULT_TOPIC_PREFIX) -> Text:
    """Where the ``D=<id>&L=<level>`` summary of every output is published."""
    return _topic(prefix, ALL_DEVICES_STATE_EVENT)


def device_set_topic(prefix: Text = DEFAULT_TOPIC_PREFIX) -> Text:
    """Accepts ``<id>,<level>``."""
    return _topic(prefix, _DEVICE_SET)


def device_get_topic(prefix: Text = DEFAULT_TOPIC_PREFIX) -> Text:
    """Accepts ``<id>``."""
    return _topic(prefix, _DEVICE_GET)


def all_devices_set_topic(prefix: Text = DEFAULT_TOPIC_PREFIX) -> Text:
    """Accepts ``D=<id>&L=<level>`` lines."""
    return _topic(prefix, _ALL_DEVICES_SET)


def all_devices_get_topic(prefix: Text = DEFAULT_TOPIC_PREFIX) -> Text:
    """Any message here publishes the all devices state."""
    return _topic(prefix, _ALL_DEVICES_GET)


def command_topic(prefix: Text = DEFAULT_TOPIC_PREFIX) -> Text:
    """Accepts a raw integration protocol line, eg: ``#OUTPUT,5,1,100.00``."""
    return _topic(prefix, _COMMAND)


def status_topic(prefix: Text = DEFAULT_TOPIC_PREFIX) -> Text:
    """Retained ``online`` / ``offline`` availability of the daemon."""
    return _topic(prefix, _STATUS)


def command_topics(prefix: Text = DEFAULT_TOPIC_PREFIX) -> List[Text]:
    return [
        device_set_topic(prefix),
        device_get_topic(prefix),
        all_devices_set_topic(prefix),
        all_devices_get_topic(prefix),
        command_topic(prefix),
    ]
