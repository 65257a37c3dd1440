#!/usr/bin/env python
# tests/test_frame_parser.py - Tests for the ~OUTPUT line parser
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

from parameterized import parameterized

from lutronbridge.common import MalformedFrameError
from lutronbridge.protocol.frame_parser import (
    Frame, FrameParser, parse_output_line)


class ParseOutputLineTest(unittest.TestCase):

    def test_zone_level(self):
        self.assertEqual(Frame(5, 1, 100.0), parse_output_line(b'5,1,100.00'))

    def test_other_action_has_no_level(self):
        self.assertEqual(Frame(5, 29, None), parse_output_line(b'5,29,6'))

    @parameterized.expand([
        (b'',),
        (b'5',),
        (b'5,1',),
        (b'abc,1,50.00',),
        (b'5,x,50.00',),
        (b'5,1,xyz',),
        (b'5,1,nan',),
        (b'5,1,\xff',),
    ])
    def test_malformed(self, body):
        self.assertRaises(MalformedFrameError, parse_output_line, body)


class FrameParserTest(unittest.TestCase):

    def setUp(self):
        self.parser = FrameParser()

    def test_single_frame(self):
        self.assertEqual(
            [Frame(5, 1, 100.0)], self.parser.feed(b'~OUTPUT,5,1,100.00\r\n'))
        self.assertEqual(b'', self.parser.pending)

    def test_multiple_frames_in_order(self):
        frames = self.parser.feed(
            b'GNET> ~OUTPUT,5,1,100.00\r\n~OUTPUT,7,1,30.00\r\nGNET> '
            b'~OUTPUT,9,1,0.00\r\n')
        self.assertEqual([5, 7, 9], [f.device_id for f in frames])
        self.assertEqual([100.0, 30.0, 0.0], [f.level for f in frames])

    def test_frame_split_across_feeds(self):
        self.assertEqual([], self.parser.feed(b'~OUTPUT,5,1,10'))
        self.assertEqual(b'~OUTPUT,5,1,10', self.parser.pending)
        self.assertEqual([Frame(5, 1, 100.0)], self.parser.feed(b'0.00\r\n'))

    def test_terminator_split_across_feeds(self):
        self.assertEqual([], self.parser.feed(b'~OUTPUT,5,1,50.00\r'))
        self.assertEqual([Frame(5, 1, 50.0)], self.parser.feed(b'\n'))

    def test_marker_split_across_feeds(self):
        self.assertEqual([], self.parser.feed(b'GNET> ~OUT'))
        self.assertEqual(b'~OUT', self.parser.pending)
        self.assertEqual([Frame(3, 1, 50.0)], self.parser.feed(b'PUT,3,1,50.00\r\n'))

    def test_one_byte_at_a_time(self):
        stream = b'login: GNET> ~OUTPUT,1,1,25.00\r\n~OUTPUT,2,29,6\r\n~OUTPUT,3,1,75.50\r\n'
        frames = []
        for i in range(len(stream)):
            frames.extend(self.parser.feed(stream[i:i + 1]))
        self.assertEqual([Frame(1, 1, 25.0), Frame(3, 1, 75.5)], frames)
        self.assertEqual(1, self.parser.ignored_count)

    def test_noise_is_discarded(self):
        self.assertEqual([], self.parser.feed(b'login: password: \r\nGNET> \r\n'))
        self.assertEqual(b'', self.parser.pending)
        self.assertEqual(0, self.parser.malformed_count)

    @parameterized.expand([
        (29,),
        (2,),
        (3,),
        (4,),
    ])
    def test_other_actions_ignored(self, action):
        line = f'~OUTPUT,5,{action},6\r\n'.encode('ascii')
        self.assertEqual([], self.parser.feed(line))
        self.assertEqual(1, self.parser.ignored_count)
        self.assertEqual(0, self.parser.malformed_count)

    @parameterized.expand([
        (b'~OUTPUT,abc,1,50.00\r\n',),
        (b'~OUTPUT,5,1,xyz\r\n',),
        (b'~OUTPUT,5\r\n',),
        (b'~OUTPUT,5,1\r\n',),
        (b'~OUTPUT,\r\n',),
        (b'~OUTPUT,5,1,',),
    ])
    def test_resumes_after_malformed(self, bad):
        frames = self.parser.feed(bad + b'~OUTPUT,7,1,30.00\r\n')
        self.assertEqual([Frame(7, 1, 30.0)], frames)
        self.assertEqual(1, self.parser.malformed_count)

    def test_overlong_line_dropped(self):
        self.assertEqual([], self.parser.feed(b'~OUTPUT,' + b'1' * 300))
        self.assertEqual(1, self.parser.malformed_count)
        self.assertEqual(
            [Frame(2, 1, 10.0)], self.parser.feed(b'\r\n~OUTPUT,2,1,10.00\r\n'))

    def test_reset(self):
        self.parser.feed(b'~OUTPUT,5,1,10')
        self.parser.reset()
        self.assertEqual(b'', self.parser.pending)
        self.assertEqual([], self.parser.feed(b'0.00\r\n'))


if __name__ == '__main__':
    unittest.main()
