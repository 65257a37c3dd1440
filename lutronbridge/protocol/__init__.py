from lutronbridge.protocol.bridge import LutronBridge
from lutronbridge.protocol.device_cache import Device, DeviceCache
from lutronbridge.protocol.events import EventSink, LoggingEventSink
from lutronbridge.protocol.frame_parser import Frame, FrameParser
from lutronbridge.protocol.session import Session, SessionState

__all__ = [
    'LutronBridge', 'Device', 'DeviceCache', 'EventSink', 'LoggingEventSink',
    'Frame', 'FrameParser', 'Session', 'SessionState',
]
