"""Builders for valid, corrupt and malformed packets used by test clients."""

from __future__ import annotations

from .codec import CRC_FIELD_SIZE, HEADER_BYTE0, HEADER_BYTE1, serialize
from .domain import Telemetry

_LCG_A = 6364136223846793005
_LCG_C = 1442695040888963407
_LCG_SEED = 0xDEADBEEFCAFEBABE
_LCG_SHIFT = 33
_MASK64 = (1 << 64) - 1
_CRC_XOR_MASK = 0xFF
_OVERSIZE_LENGTH = 5000


def valid_packet(telemetry: Telemetry) -> bytes:
    """Return a fully valid, CRC-correct packet."""
    return serialize(telemetry)


def corrupt_crc(telemetry: Telemetry) -> bytes:
    """Return a valid packet whose two CRC bytes are inverted."""
    data = bytearray(serialize(telemetry))
    if len(data) >= CRC_FIELD_SIZE:
        data[-1] ^= _CRC_XOR_MASK
        data[-2] ^= _CRC_XOR_MASK
    return bytes(data)


def _lcg_bytes():
    state = _LCG_SEED
    while True:
        state = (state * _LCG_A + _LCG_C) & _MASK64
        yield (state >> _LCG_SHIFT) & 0xFF


def garbage_bytes(count: int) -> bytes:
    """Return ``count`` pseudo-random bytes that never start with the header.

    The sequence is deterministic: the same count always gives the same bytes.
    """
    if count <= 0:
        return b""
    stream = _lcg_bytes()
    first = next(byte for byte in stream if byte != HEADER_BYTE0)
    rest = (next(stream) for _ in range(count - 1))
    return bytes((first, *rest))


def oversize_length() -> bytes:
    """Return a header and a length field (5000) above the parser's limit."""
    return bytes((HEADER_BYTE0, HEADER_BYTE1)) + _OVERSIZE_LENGTH.to_bytes(2, "little")


def fragment(packet: bytes, chunk_size: int) -> list[bytes]:
    """Split ``packet`` into chunks of at most ``chunk_size`` bytes."""
    if not packet or chunk_size <= 0:
        return []
    return [
        bytes(packet[offset : offset + chunk_size])
        for offset in range(0, len(packet), chunk_size)
    ]