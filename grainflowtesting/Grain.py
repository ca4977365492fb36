# Copyright (C) 2026 Advanced Media Workflow Association
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import re
import time
import uuid
from collections import namedtuple
from fractions import Fraction

# The UTC leap seconds table below was extracted from the information provided at
# http://www.ietf.org/timezones/data/leap-seconds.list
#
# The order has been reversed.
# The NTP epoch seconds have been converted to Unix epoch seconds. Only leap seconds since the PTP epoch
# era that grains are likely to be stamped in are listed.
UTC_LEAP = [
    # || UTC SEC  |  TAI SEC - 1 ||
    (1483228800, 1483228836),  # 1 Jan 2017, 37 leap seconds
    (1435708800, 1435708835),  # 1 Jul 2015, 36 leap seconds
    (1341100800, 1341100834),  # 1 Jul 2012, 35 leap seconds
    (1230768000, 1230768033),  # 1 Jan 2009, 34 leap seconds
    (1136073600, 1136073632),  # 1 Jan 2006, 33 leap seconds
    (915148800, 915148831),  # 1 Jan 1999, 32 leap seconds
]

NANOS_PER_SEC = 1000000000

TIMESTAMP_PATTERN = re.compile(r"^(\d+):(\d{1,9})$")
RATIONAL_PATTERN = re.compile(r"^(\d+)(?:/(\d+))?$")


class PTPTimestamp(namedtuple("PTPTimestamp", ["seconds", "nanoseconds"])):
    """A TAI timestamp as carried by grains, written as '<seconds>:<nanoseconds>'"""

    @classmethod
    def from_string(cls, value):
        match = TIMESTAMP_PATTERN.match(value.strip())
        if not match:
            raise ValueError("'{}' is not a PTP timestamp".format(value))
        return cls(int(match.group(1)), int(match.group(2)))

    @classmethod
    def from_nanos(cls, nanos):
        return cls(nanos // NANOS_PER_SEC, nanos % NANOS_PER_SEC)

    @classmethod
    def from_utc(cls, secs, nanos, is_leap=False):
        """Convert a UTC time into a TAI time"""
        leap_sec = 0
        for tbl_sec, tbl_tai_sec_minus_1 in UTC_LEAP:
            if secs >= tbl_sec:
                leap_sec = (tbl_tai_sec_minus_1 + 1) - tbl_sec
                break
        return cls(secs + leap_sec + is_leap, nanos)

    @classmethod
    def now(cls, offset=0.0):
        my_time = time.time() + offset
        secs = int(my_time)
        return cls.from_utc(secs, int((my_time - secs) * 1e9))

    def to_nanos(self):
        return self.seconds * NANOS_PER_SEC + self.nanoseconds

    def __add__(self, duration):
        """Add a Fraction of seconds"""
        return PTPTimestamp.from_nanos(self.to_nanos() + int(Fraction(duration) * NANOS_PER_SEC))

    def __str__(self):
        return "{}:{}".format(self.seconds, self.nanoseconds)


def parse_timestamp(value):
    """Returns a PTPTimestamp, or None if value isn't a valid timestamp"""
    if isinstance(value, PTPTimestamp):
        return value
    if isinstance(value, str):
        try:
            return PTPTimestamp.from_string(value)
        except ValueError:
            return None
    if isinstance(value, dict) and "seconds" in value and "nanoseconds" in value:
        try:
            return PTPTimestamp(int(value["seconds"]), int(value["nanoseconds"]))
        except (TypeError, ValueError):
            return None
    return None


def parse_uuid(value):
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value)) if value else None
    except ValueError:
        return None


def parse_rational(value):
    """Returns a non-zero Fraction, or None. Accepts 'n/d', 'n' and {'numerator', 'denominator'}"""
    try:
        if isinstance(value, Fraction):
            rational = value
        elif isinstance(value, dict):
            rational = Fraction(int(value["numerator"]), int(value.get("denominator", 1)))
        elif isinstance(value, str):
            match = RATIONAL_PATTERN.match(value.strip())
            if not match:
                return None
            rational = Fraction(int(match.group(1)), int(match.group(2) or 1))
        else:
            return None
    except (KeyError, TypeError, ValueError, ZeroDivisionError):
        return None
    return rational if rational > 0 else None


class Grain(object):
    """
    A single timed media unit received from a flow.
    Fields which could not be parsed are held as None, so a grain's validity is judged by check_grain().
    """

    def __init__(self, buffers, ptp_sync, ptp_origin, timecode, flow_id, source_id, duration):
        object.__setattr__(self, "buffers", tuple(buffers or ()))
        object.__setattr__(self, "ptp_sync", parse_timestamp(ptp_sync))
        object.__setattr__(self, "ptp_origin", parse_timestamp(ptp_origin))
        object.__setattr__(self, "timecode", timecode)
        object.__setattr__(self, "flow_id", parse_uuid(flow_id))
        object.__setattr__(self, "source_id", parse_uuid(source_id))
        object.__setattr__(self, "duration", parse_rational(duration))

    def __setattr__(self, name, value):
        raise AttributeError("Grain is immutable")

    def __repr__(self):
        return "Grain(flow_id={}, ptp_sync={}, ptp_origin={}, duration={})" \
               .format(self.flow_id, self.ptp_sync, self.ptp_origin, self.duration)

    @classmethod
    def from_message(cls, obj):
        return cls(None, obj.get("ptpSyncTimestamp"), obj.get("ptpOriginTimestamp"), obj.get("timecode"),
                   obj.get("flow_id"), obj.get("source_id"), obj.get("duration"))

    def to_message(self, payload_size):
        """Describe this grain as a flow's spout node reports it over the WebSocket"""
        return {
            "ptpSyncTimestamp": str(self.ptp_sync),
            "ptpOriginTimestamp": str(self.ptp_origin),
            "timecode": self.timecode,
            "flow_id": str(self.flow_id),
            "source_id": str(self.source_id),
            "duration": "{}/{}".format(self.duration.numerator, self.duration.denominator),
            "payloadCount": 1,
            "payloadSize": payload_size
        }


def is_number(value):
    # bool is an int subclass but never a valid size or count
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def check_grain(assertions, obj):
    """Check a received message describes a valid single payload grain, returning the Grain"""
    grain = Grain.from_message(obj)
    payload_count = obj.get("payloadCount", 0)
    if isinstance(payload_count, bool):
        assertions.fail("has single payload (expected 1, got {!r})".format(payload_count))
    else:
        assertions.equal(payload_count, 1, "has single payload")
    payload_size = obj.get("payloadSize", 0)
    assertions.ok(is_number(payload_size) and payload_size > 0, "has payload contents")
    assertions.ok(grain.ptp_sync, "has valid PTP sync timestamp")
    assertions.ok(grain.ptp_origin, "has valid PTP origin timestamp")
    assertions.ok(grain.flow_id, "has valid flow id")
    assertions.ok(grain.source_id, "has valid source id")
    assertions.ok(grain.duration, "has valid duration")
    return grain
