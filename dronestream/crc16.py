"""CRC-16/XMODEM checksum (polynomial 0x1021, initial value 0)."""

from __future__ import annotations

_POLYNOMIAL = 0x1021


def _build_table() -> tuple[int, ...]:
    table = []
    for index in range(256):
        crc = index << 8
        for _ in range(8):
            crc = ((crc << 1) ^ _POLYNOMIAL) if crc & 0x8000 else (crc << 1)
            crc &= 0xFFFF
        table.append(crc)
    return tuple(table)


_TABLE = _build_table()


def crc16(data: bytes | bytearray | memoryview) -> int:
    """Return the CRC-16/XMODEM checksum of ``data``."""
    crc = 0
    for byte in bytes(data):
        crc = ((crc << 8) & 0xFFFF) ^ _TABLE[(crc >> 8) ^ byte]
    return crc