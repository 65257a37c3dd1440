#!/usr/bin/env python
# lutronbridge/protocol/frame_parser.py - Incremental ~OUTPUT line parser
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

import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from lutronbridge.common import (
    END_LINE, OUTPUT_EVENT_MARKER, MalformedFrameError, OutputAction)

logger = logging.getLogger(__name__)

__all__ = ['Frame', 'FrameParser', 'parse_output_line']

# A monitoring line is short; anything longer without a terminator is noise.
MAX_LINE_LENGTH = 256


@dataclass(frozen=True)
class Frame:
    """
    One monitoring line reporting on an output.

    ``level`` is only guaranteed for :attr:`OutputAction.ZONE_LEVEL` frames.
    """
    device_id: int
    action: int
    level: Optional[float] = None


def parse_output_line(body: bytes) -> Frame:
    """
    Parses the part of a monitoring line between the ``~OUTPUT,`` marker and
    the line terminator, eg: ``b'5,1,100.00'``.

    :raises MalformedFrameError: if a field is missing or not numeric.
    """
    try:
        text = body.decode('ascii')
    except UnicodeDecodeError as e:
        raise MalformedFrameError(f'non-ASCII data in {body!r}') from e

    tokens = [t.strip() for t in text.split(',')]
    if len(tokens) < 2:
        raise MalformedFrameError(f'missing action in {body!r}')

    try:
        device_id = int(tokens[0])
        action = int(tokens[1])
    except ValueError as e:
        raise MalformedFrameError(f'bad device or action in {body!r}') from e

    if action != OutputAction.ZONE_LEVEL:
        return Frame(device_id, action)

    if len(tokens) < 3:
        raise MalformedFrameError(f'missing level in {body!r}')
    try:
        level = float(tokens[2])
    except ValueError as e:
        raise MalformedFrameError(f'bad level in {body!r}') from e
    if not math.isfinite(level):
        raise MalformedFrameError(f'bad level in {body!r}')

    return Frame(device_id, action, level)


class FrameParser:
    """
    Turns the arbitrarily chunked byte stream from the gateway into
    :class:`Frame` objects.

    Bytes that do not belong to a complete line are kept between calls to
    :meth:`feed`, so a line split across two reads is still decoded.  Prompts,
    echoes and other monitoring lines are skipped.
    """

    def __init__(self, marker: bytes = OUTPUT_EVENT_MARKER,
                 max_line_length: int = MAX_LINE_LENGTH):
        self._marker = marker
        self._max_line_length = max_line_length
        self._buffer = bytearray()
        self.malformed_count = 0
        self.ignored_count = 0

    @property
    def pending(self) -> bytes:
        """Unconsumed bytes waiting for the rest of their line."""
        return bytes(self._buffer)

    def reset(self) -> None:
        self._buffer.clear()

    def feed(self, data: bytes) -> List[Frame]:
        """
        Appends ``data`` to the internal buffer and returns every complete
        zone level frame now available, in the order they were received.

        Never raises on bad input.
        """
        self._buffer.extend(data)
        marker_len = len(self._marker)
        frames = []

        while True:
            start = self._buffer.find(self._marker)
            if start == -1:
                self._discard_unmatched()
                break
            if start:
                del self._buffer[:start]

            end = self._buffer.find(END_LINE, marker_len)
            next_marker = self._buffer.find(self._marker, marker_len)
            if next_marker != -1 and (end == -1 or next_marker < end):
                # Another event started before this one was terminated.
                self._malformed(self._buffer[:next_marker], 'truncated line')
                del self._buffer[:next_marker]
                continue

            if end == -1:
                if len(self._buffer) > self._max_line_length:
                    self._malformed(self._buffer, 'line too long')
                    del self._buffer[:marker_len]
                    continue
                # wait for the rest of the line
                break

            body = bytes(self._buffer[marker_len:end])
            del self._buffer[:end + len(END_LINE)]

            try:
                frame = parse_output_line(body)
            except MalformedFrameError as e:
                self._malformed(body, str(e))
                continue

            if frame.action != OutputAction.ZONE_LEVEL:
                self.ignored_count += 1
                logger.debug(
                    f'parser: ignoring device {frame.device_id}, '
                    f'action {frame.action}')
                continue

            frames.append(frame)

        return frames

    def _discard_unmatched(self) -> None:
        # Keep a tail that could be the start of a marker split across reads.
        buf = self._buffer
        for keep in range(min(len(self._marker) - 1, len(buf)), 0, -1):
            if buf.endswith(self._marker[:keep]):
                del buf[:-keep]
                return
        buf.clear()

    def _malformed(self, data, reason: str) -> None:
        self.malformed_count += 1
        logger.warning(f'parser: discarding malformed frame {bytes(data)!r}: {reason}')
