"""Outbound notifications raised by the bridge.

An :class:`EventSink` is whatever tells the outside world that a light
changed.  The daemon publishes to MQTT; library users can subclass this.
"""
from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

__all__ = ['EventSink', 'LoggingEventSink', 'format_change_event']

# The MQTT sink uses these as topic suffixes.
DEVICE_CHANGED_EVENT = 'device/changed'
ALL_DEVICES_STATE_EVENT = 'alldevices/state'


def format_change_event(device_id: int, level: float) -> str:
    """Payload for a change notification, eg: ``device=5&level=100``."""
    return f'device={device_id:d}&level={level:.0f}'


class EventSink:
    """Base class for notification targets.  Both hooks do nothing."""

    def on_level_changed(self, device_id: int, level: float) -> None:
        """
        Called by the listener for every zone level frame received.

        :param device_id: Integration ID of the output.
        :param level: New level, 0.00 - 100.00.
        """

    def on_all_devices_state(self, states: str) -> None:
        """
        Called with the ``D=<id>&L=<level>`` lines produced by
        ``describe_all_devices``.
        """


class LoggingEventSink(EventSink):
    """Writes notifications to the log.  Used when no other sink is given."""

    def on_level_changed(self, device_id: int, level: float) -> None:
        logger.info(f'{DEVICE_CHANGED_EVENT}: {format_change_event(device_id, level)}')

    def on_all_devices_state(self, states: str) -> None:
        logger.info(f'{ALL_DEVICES_STATE_EVENT}: {states!r}')
