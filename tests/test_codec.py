import struct

import pytest

from dronestream.codec import MalformedPayloadError, deserialize, serialize
from dronestream.crc16 import crc16
from dronestream.domain import Telemetry


def simple_telemetry():
    return Telemetry("D1", 1.0, 2.0, 3.0, 4.0, 1000)


def extract_payload(packet):
    return packet[4:-2]


# --- serializer ---


def test_output_starts_with_header_bytes():
    packet = serialize(simple_telemetry())
    assert packet[:2] == b"\xaa\x55"


def test_length_field_matches_payload_size():
    packet = serialize(simple_telemetry())
    assert struct.unpack_from("<H", packet, 2)[0] == 44


def test_payload_starts_with_drone_id_length_prefix():
    packet = serialize(simple_telemetry())
    assert packet[4] == 0x02
    assert packet[5] == 0x00


def test_payload_contains_drone_id_bytes():
    packet = serialize(simple_telemetry())
    assert packet[6] == 0x44
    assert packet[7] == 0x31


@pytest.mark.parametrize("offset, expected", [(8, 1.0), (16, 2.0), (24, 3.0), (32, 4.0)])
def test_doubles_encoded_little_endian(offset, expected):
    packet = serialize(simple_telemetry())
    assert struct.unpack_from("<d", packet, offset)[0] == expected


def test_timestamp_encoded_as_little_endian_uint64():
    packet = serialize(simple_telemetry())
    assert struct.unpack_from("<Q", packet, 40)[0] == 1000


def test_crc_at_end_matches_crc16_over_full_frame():
    packet = serialize(simple_telemetry())
    assert struct.unpack_from("<H", packet, len(packet) - 2)[0] == crc16(packet[:-2])


def test_total_size_is_6_plus_payload_size():
    assert len(serialize(simple_telemetry())) == 50


def test_oversized_drone_id_rejected():
    with pytest.raises(ValueError):
        serialize(Telemetry("X" * 65494, 0.0, 0.0, 0.0, 0.0, 0))


def test_negative_timestamp_rejected():
    with pytest.raises(ValueError):
        serialize(Telemetry("D1", 0.0, 0.0, 0.0, 0.0, -1))


# --- deserializer ---


def assert_same(result, expected):
    assert result.drone_id == expected.drone_id
    assert result.latitude == pytest.approx(expected.latitude)
    assert result.longitude == pytest.approx(expected.longitude)
    assert result.altitude == pytest.approx(expected.altitude)
    assert result.speed == pytest.approx(expected.speed)
    assert result.timestamp == expected.timestamp


def test_valid_packet_round_trips_all_fields():
    expected = Telemetry("DRONE-42", 51.5074, -0.1278, 150.5, 23.7, 1700000000)
    assert_same(deserialize(extract_payload(serialize(expected))), expected)


def test_empty_drone_id_round_trips():
    expected = Telemetry("", 0.0, 0.0, 0.0, 0.0, 0)
    assert deserialize(extract_payload(serialize(expected))) == expected


def test_long_drone_id_round_trips():
    expected = Telemetry("X" * 200, -89.999, 179.999, 10000.0, 999.99, 2**64 - 1)
    assert_same(deserialize(extract_payload(serialize(expected))), expected)


def test_empty_payload_is_malformed():
    with pytest.raises(MalformedPayloadError):
        deserialize(b"")


def test_payload_shorter_than_min_fixed_size_is_malformed():
    with pytest.raises(MalformedPayloadError):
        deserialize(bytes(41))


def test_id_len_exceeds_remaining_payload_is_malformed():
    payload = bytearray(42)
    payload[0:2] = b"\xff\xff"
    with pytest.raises(MalformedPayloadError):
        deserialize(payload)


def test_id_len_plus_fixed_overhead_exceeds_size_is_malformed():
    payload = bytearray(42)
    payload[0:2] = b"\x01\x00"
    with pytest.raises(MalformedPayloadError):
        deserialize(payload)


def test_malformed_error_is_value_error():
    with pytest.raises(ValueError):
        deserialize(b"\x00")


def test_exact_minimum_payload_with_empty_id_succeeds():
    assert deserialize(bytes(42)) == Telemetry("", 0.0, 0.0, 0.0, 0.0, 0)


def test_payload_with_extra_trailing_bytes_succeeds():
    expected = Telemetry("D1", 1.0, 2.0, 3.0, 4.0, 1000)
    payload = extract_payload(serialize(expected)) + b"\xde\xad\xbe\xef"
    assert deserialize(payload) == expected


def test_non_utf8_drone_id_bytes_survive_round_trip():
    raw_id = b"\xff\xfe"
    payload = struct.pack("<H", len(raw_id)) + raw_id + struct.pack("<ddddQ", 1.0, 2.0, 3.0, 4.0, 5)
    telemetry = deserialize(payload)
    assert extract_payload(serialize(telemetry)) == payload