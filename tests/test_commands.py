#!/usr/bin/env python
# tests/test_commands.py - Tests for the CommandTranslator
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

import unittest
from unittest.mock import AsyncMock, Mock, call, patch

import pytest
from parameterized import parameterized

from lutronbridge.common import query_output_command, set_output_command
from lutronbridge.protocol.commands import CommandTranslator, parse_bulk_state
from lutronbridge.protocol.device_cache import Device, DeviceCache
from lutronbridge.protocol.events import EventSink
from lutronbridge.protocol.session import Session


class CommandFormatTest(unittest.TestCase):

    @parameterized.expand([
        (5, 100, '#OUTPUT,5,1,100.00'),
        (5, 100.0, '#OUTPUT,5,1,100.00'),
        (7, 33.333, '#OUTPUT,7,1,33.33'),
        (0, 0, '#OUTPUT,0,1,0.00'),
        (12, 150, '#OUTPUT,12,1,150.00'),
        (3, -5.5, '#OUTPUT,3,1,-5.50'),
    ])
    def test_set_output_command(self, device_id, level, expected):
        self.assertEqual(expected, set_output_command(device_id, level))

    def test_query_output_command(self):
        self.assertEqual('?OUTPUT,5,1', query_output_command(5))


class ParseBulkStateTest(unittest.TestCase):

    @parameterized.expand([
        ('D=3&L=20.00\r\nD=9&L=75.00\r\n', [(3, 20.0), (9, 75.0)]),
        ('D=5&L=100\r\n', [(5, 100.0)]),
        ('', []),
        ('garbage', []),
        ('D=3&L=20.00\r\nD=9&L=75', [(3, 20.0)]),
        ('D=3&L=20.00\r\nD=9', [(3, 20.0)]),
        ('D=3&L=20.00\r\nD=9&', [(3, 20.0)]),
        ('D=x&L=20.00\r\nD=9&L=75.00\r\n', []),
        ('D=3&L=abc\r\nD=9&L=75.00\r\n', []),
        ('D=3&X=5\r\nD=9&L=75.00\r\n', []),
        ('D=3&L=20.00\r\nnoise D=9&L=75.00\r\n', [(3, 20.0)]),
        ('junk D=9&L=75.00\r\n', []),
    ])
    def test_parse(self, states, expected):
        self.assertEqual(expected, list(parse_bulk_state(states)))


class TestCommandTranslator:
    @pytest.fixture(autouse=True)
    def setup(self, session, mock_transport):
        self.session = session
        self.transport = mock_transport
        self.cache = DeviceCache()
        self.sink = Mock(spec=EventSink)
        self.commands = CommandTranslator(self.session, self.cache, self.sink, scan_delay=0)

    @pytest.mark.asyncio
    async def test_set_level(self):
        assert await self.commands.set_level(5, 100)
        assert self.transport.written_data == [b'#OUTPUT,5,1,100.00\r\n']

    @pytest.mark.asyncio
    async def test_query_level(self):
        assert await self.commands.query_level(5)
        assert self.transport.written_data == [b'?OUTPUT,5,1\r\n']
        # the answer arrives through the listener, not here
        assert len(self.cache) == 0

    @pytest.mark.asyncio
    async def test_send_raw(self):
        assert await self.commands.send_raw('#DEVICE,1,2,3')
        assert self.transport.written_data == [b'#DEVICE,1,2,3\r\n']

    @pytest.mark.asyncio
    async def test_disconnected_commands_fail_without_writing(self):
        await self.session.disconnect()
        self.transport.written_data.clear()

        assert not await self.commands.set_level(5, 100)
        assert not await self.commands.query_level(5)
        assert not await self.commands.send_raw('?OUTPUT,5,1')
        assert not await self.commands.initialize_range(3)
        assert not await self.commands.apply_bulk_state('D=3&L=20.00\r\n')
        assert self.transport.written_data == []

    @pytest.mark.asyncio
    async def test_never_connected(self):
        commands = CommandTranslator(Session(), self.cache, self.sink)
        assert not await commands.set_level(5, 100)

    @pytest.mark.asyncio
    async def test_apply_bulk_state(self):
        with patch.object(self.commands, 'set_level', new=AsyncMock(return_value=True)) as set_level:
            assert await self.commands.apply_bulk_state('D=3&L=20.00\r\nD=9&L=75.00\r\n')
        assert set_level.call_args_list == [call(3, 20.0), call(9, 75.0)]

    @pytest.mark.asyncio
    async def test_apply_bulk_state_writes_in_order(self):
        assert await self.commands.apply_bulk_state('D=3&L=20.00\r\nD=9&L=75.00\r\nD=1&L=')
        assert self.transport.written_lines() == [
            b'#OUTPUT,3,1,20.00', b'#OUTPUT,9,1,75.00']

    @pytest.mark.asyncio
    async def test_apply_bulk_state_missing_level_sets_nothing(self):
        assert await self.commands.apply_bulk_state('D=3&X=5\r\nD=9&L=75.00\r\n')
        assert self.transport.written_data == []

    @pytest.mark.asyncio
    async def test_initialize_range(self):
        assert await self.commands.initialize_range(3)
        assert self.transport.written_lines() == [
            b'?OUTPUT,0,1', b'?OUTPUT,1,1', b'?OUTPUT,2,1']

    @pytest.mark.asyncio
    async def test_initialize_range_empty(self):
        assert await self.commands.initialize_range(0)
        assert self.transport.written_data == []

    @pytest.mark.asyncio
    async def test_initialize_range_negative(self):
        with pytest.raises(ValueError):
            await self.commands.initialize_range(-1)

    @pytest.mark.asyncio
    async def test_initialize_range_waits_between_queries(self):
        commands = CommandTranslator(self.session, self.cache, self.sink, scan_delay=0.5)
        with patch('lutronbridge.protocol.commands.sleep', new=AsyncMock()) as sleep:
            assert await commands.initialize_range(4)
        assert sleep.await_count == 4
        sleep.assert_awaited_with(0.5)

    @pytest.mark.asyncio
    @pytest.mark.parametrize('text, expected', [
        ('5,100', b'#OUTPUT,5,1,100.00\r\n'),
        ('5, 37.5', b'#OUTPUT,5,1,37.50\r\n'),
    ])
    async def test_set_dimmer(self, text, expected):
        assert await self.commands.set_dimmer(text)
        assert self.transport.written_data == [expected]

    @pytest.mark.asyncio
    @pytest.mark.parametrize('text', ['5', '', 'a,100', '5,high'])
    async def test_set_dimmer_invalid(self, text):
        assert not await self.commands.set_dimmer(text)
        assert self.transport.written_data == []

    @pytest.mark.asyncio
    async def test_get_dimmer(self):
        assert await self.commands.get_dimmer('7')
        assert not await self.commands.get_dimmer('seven')
        assert self.transport.written_data == [b'?OUTPUT,7,1\r\n']

    def test_describe_all_devices(self):
        self.cache.update_level(5, 100.0)
        self.cache.update_level(7, 30.0)

        states = self.commands.describe_all_devices()

        assert states == 'D=5&L=100\r\nD=7&L=30\r\n'
        self.sink.on_all_devices_state.assert_called_once_with(states)

    def test_describe_all_devices_rounds_levels(self):
        self.cache.add(Device(2, 33.4, 100.0))
        self.cache.add(Device(3, 66.6, 100.0))
        assert self.commands.describe_all_devices() == 'D=2&L=33\r\nD=3&L=67\r\n'

    def test_describe_no_devices(self):
        assert self.commands.describe_all_devices() == ''
        self.sink.on_all_devices_state.assert_called_once_with('')

    def test_describe_round_trips_through_bulk_state(self):
        self.cache.update_level(5, 100.0)
        self.cache.update_level(7, 30.0)
        assert list(parse_bulk_state(self.commands.describe_all_devices())) == [
            (5, 100.0), (7, 30.0)]
