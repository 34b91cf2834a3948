"""Encoding and decoding of framed telemetry packets.

A packet is: header ``AA 55``, payload length (uint16 LE), payload, and a
CRC-16 (uint16 LE) over header, length and payload. The payload is the drone
id length (uint16 LE), the drone id bytes, latitude, longitude, altitude and
speed as little-endian doubles, and the timestamp as a uint64 LE.
"""

from __future__ import annotations

import struct

from .crc16 import crc16
from .domain import Telemetry

HEADER_BYTE0 = 0xAA
HEADER_BYTE1 = 0x55
HEADER = bytes((HEADER_BYTE0, HEADER_BYTE1))
HEADER_SIZE = 2
LENGTH_FIELD_SIZE = 2
CRC_FIELD_SIZE = 2
ID_LEN_FIELD_SIZE = 2
DOUBLE_FIELD_SIZE = 8
TIMESTAMP_FIELD_SIZE = 8

MIN_PAYLOAD_SIZE = ID_LEN_FIELD_SIZE + 4 * DOUBLE_FIELD_SIZE + TIMESTAMP_FIELD_SIZE
MAX_DRONE_ID_SIZE = 0xFFFF - MIN_PAYLOAD_SIZE

_U16 = struct.Struct("<H")
_FIELDS = struct.Struct("<ddddQ")


class MalformedPayloadError(ValueError):
    """Raised when a payload cannot be decoded into telemetry."""


def encode_drone_id(drone_id: str) -> bytes:
    """Encode a drone id as UTF-8, passing through undecodable raw bytes."""
    return drone_id.encode("utf-8", "surrogateescape")


def decode_drone_id(raw: bytes) -> str:
    """Decode drone id bytes; bytes that are not UTF-8 survive a round trip."""
    return raw.decode("utf-8", "surrogateescape")


def serialize(telemetry: Telemetry) -> bytes:
    """Return a complete, CRC-protected packet for ``telemetry``."""
    raw_id = encode_drone_id(telemetry.drone_id)
    if len(raw_id) > MAX_DRONE_ID_SIZE:
        raise ValueError(
            f"drone id of {len(raw_id)} bytes exceeds the maximum of {MAX_DRONE_ID_SIZE}"
        )
    if not 0 <= telemetry.timestamp < 1 << 64:
        raise ValueError(f"timestamp {telemetry.timestamp} does not fit in 64 unsigned bits")

    payload = b"".join(
        (
            _U16.pack(len(raw_id)),
            raw_id,
            _FIELDS.pack(
                telemetry.latitude,
                telemetry.longitude,
                telemetry.altitude,
                telemetry.speed,
                telemetry.timestamp,
            ),
        )
    )
    frame = HEADER + _U16.pack(len(payload)) + payload
    return frame + _U16.pack(crc16(frame))


def deserialize(payload: bytes | bytearray | memoryview) -> Telemetry:
    """Decode a payload (no header, length or CRC) into telemetry.

    Trailing bytes after the fixed fields are ignored.
    """
    payload = bytes(payload)
    if len(payload) < MIN_PAYLOAD_SIZE:
        raise MalformedPayloadError(
            f"payload of {len(payload)} bytes is shorter than {MIN_PAYLOAD_SIZE}"
        )
    (id_len,) = _U16.unpack_from(payload, 0)
    if id_len + MIN_PAYLOAD_SIZE > len(payload):
        raise MalformedPayloadError(
            f"drone id length {id_len} exceeds the {len(payload)}-byte payload"
        )
    start = ID_LEN_FIELD_SIZE
    drone_id = decode_drone_id(payload[start : start + id_len])
    latitude, longitude, altitude, speed, timestamp = _FIELDS.unpack_from(
        payload, start + id_len
    )
    return Telemetry(drone_id, latitude, longitude, altitude, speed, timestamp)