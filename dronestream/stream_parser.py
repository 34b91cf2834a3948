"""Incremental framing parser for the telemetry byte stream."""

from __future__ import annotations

import struct
from enum import Enum, auto
from typing import Callable

from .codec import (
    CRC_FIELD_SIZE,
    HEADER_BYTE0,
    HEADER_BYTE1,
    HEADER_SIZE,
    LENGTH_FIELD_SIZE,
    MalformedPayloadError,
    deserialize,
)
from .crc16 import crc16
from .domain import Telemetry

MAX_PAYLOAD = 4096

_U16 = struct.Struct("<H")


class _State(Enum):
    HUNT_HEADER = auto()
    READ_LENGTH = auto()
    READ_PAYLOAD = auto()
    READ_CRC = auto()
    COMPLETE_FRAME = auto()


class StreamParser:
    """Finds packet boundaries in a byte stream and validates their CRC.

    Each valid frame's payload bytes are passed to ``on_packet``. Frames with a
    payload length above ``MAX_PAYLOAD`` or a bad CRC are skipped by resuming
    the header search one byte after the rejected header.
    """

    def __init__(self, on_packet: Callable[[bytes], None]) -> None:
        self._on_packet = on_packet
        self._buffer = bytearray()
        self._read_pos = 0
        self._header_start = 0
        self._pending_length = 0
        self._state = _State.HUNT_HEADER
        self._crc_fail_count = 0
        self._steps = {
            _State.HUNT_HEADER: self._hunt_header,
            _State.READ_LENGTH: self._read_length,
            _State.READ_PAYLOAD: self._read_payload,
            _State.READ_CRC: self._read_crc,
            _State.COMPLETE_FRAME: self._complete_frame,
        }

    @property
    def crc_fail_count(self) -> int:
        """Number of frames rejected because of a CRC mismatch."""
        return self._crc_fail_count

    def feed(self, chunk: bytes | bytearray | memoryview) -> None:
        """Append bytes and deliver every complete packet they finish."""
        self._buffer += chunk
        while self._steps[self._state]():
            pass
        # Bytes before the read position have been scanned and rejected.
        if self._state is _State.HUNT_HEADER and self._read_pos > 0:
            del self._buffer[: self._read_pos]
            self._read_pos = 0
            self._header_start = 0

    def _hunt_header(self) -> bool:
        index = self._buffer.find(HEADER_BYTE0, self._read_pos)
        if index < 0:
            self._read_pos = len(self._buffer)
            return False
        self._header_start = index
        if index + 1 >= len(self._buffer):
            self._read_pos = index
            return False
        if self._buffer[index + 1] == HEADER_BYTE1:
            self._read_pos = index + HEADER_SIZE
            self._state = _State.READ_LENGTH
        else:
            self._read_pos = index + 1
        return True

    def _read_length(self) -> bool:
        if self._read_pos + LENGTH_FIELD_SIZE > len(self._buffer):
            return False
        (self._pending_length,) = _U16.unpack_from(self._buffer, self._read_pos)
        self._read_pos += LENGTH_FIELD_SIZE
        if self._pending_length > MAX_PAYLOAD:
            self._resync()
        else:
            self._state = _State.READ_PAYLOAD
        return True

    def _read_payload(self) -> bool:
        if self._read_pos + self._pending_length > len(self._buffer):
            return False
        self._read_pos += self._pending_length
        self._state = _State.READ_CRC
        return True

    def _read_crc(self) -> bool:
        if self._read_pos + CRC_FIELD_SIZE > len(self._buffer):
            return False
        (received,) = _U16.unpack_from(self._buffer, self._read_pos)
        self._read_pos += CRC_FIELD_SIZE
        frame_len = HEADER_SIZE + LENGTH_FIELD_SIZE + self._pending_length
        start = self._header_start
        if received != crc16(self._buffer[start : start + frame_len]):
            self._crc_fail_count += 1
            self._resync()
        else:
            self._state = _State.COMPLETE_FRAME
        return True

    def _complete_frame(self) -> bool:
        start = self._header_start + HEADER_SIZE + LENGTH_FIELD_SIZE
        payload = bytes(self._buffer[start : start + self._pending_length])
        del self._buffer[: self._read_pos]
        self._read_pos = 0
        self._header_start = 0
        self._pending_length = 0
        self._state = _State.HUNT_HEADER
        self._on_packet(payload)
        return True

    def _resync(self) -> None:
        self._read_pos = self._header_start + 1
        self._state = _State.HUNT_HEADER


def make_telemetry_parser(on_telemetry: Callable[[Telemetry], None]) -> StreamParser:
    """Return a parser that decodes payloads and passes telemetry on.

    Payloads that fail to decode are dropped silently.
    """

    def on_packet(payload: bytes) -> None:
        try:
            telemetry = deserialize(payload)
        except MalformedPayloadError:
            return
        on_telemetry(telemetry)

    return StreamParser(on_packet)