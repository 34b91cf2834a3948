"""Test client that sends telemetry scenarios to the server over TCP."""

from __future__ import annotations

import logging
import re
import socket
import sys
import time
from dataclasses import dataclass
from typing import Callable

from . import packet_builder
from .domain import DEFAULT_ALTITUDE_LIMIT, DEFAULT_SPEED_LIMIT, Telemetry

log = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 9000
MIN_PORT = 1
MAX_PORT = 65535
DRONE_COUNT = 5
NORMAL_PACKET_COUNT = 1000
CORRUPT_ITERATIONS = 100
GARBAGE_THRESHOLD = 3
CORRUPT_THRESHOLD = 5
GARBAGE_SIZE = 32
STRESS_DURATION_SEC = 10.0
ALERT_DRONE_COUNT = 3
ALERT_PACKETS_PER_DRONE = 5
ALERT_ALTITUDE = 150.0
ALERT_SPEED = 60.0
MULTI_DRONE_COUNT = 100
MULTI_PACKETS_PER_DRONE = 10
INTERLEAVED_DRONE_COUNT = 5
INTERLEAVED_ROUNDS = 50
NORMAL_ALTITUDE = 50.0
NORMAL_SPEED = 20.0

_CHUNK_MOD = 3
_CORRUPT_MOD = 10
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass
class ClientArgs:
    """Command-line options of the client."""

    scenario: str = ""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


def _parse_port_value(text: str) -> int:
    match = _LEADING_INT.match(text)
    if match is None:
        raise ValueError(f"invalid --port value {text!r}")
    port = int(match.group(1))
    if not MIN_PORT <= port <= MAX_PORT:
        raise ValueError(f"--port value {port} out of range ({MIN_PORT}-{MAX_PORT})")
    return port


def parse_args(argv: list[str]) -> ClientArgs:
    """Parse ``--scenario``, ``--host`` and ``--port``; raise ValueError on a bad port."""
    args = ClientArgs()
    for option, value in zip(argv, argv[1:]):
        if option == "--scenario":
            args.scenario = value
        elif option == "--host":
            args.host = value
        elif option == "--port":
            args.port = _parse_port_value(value)
    return args


def tcp_connect(host: str, port: int) -> socket.socket:
    """Connect to an IPv4 address; raise ValueError for a bad address, OSError otherwise."""
    try:
        socket.inet_pton(socket.AF_INET, host)
    except OSError:
        raise ValueError(f"inet_pton() failed for host: {host}") from None
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.connect((host, port))
    except BaseException:
        sock.close()
        raise
    return sock


def send_all(sock: socket.socket, data: bytes) -> None:
    """Send every byte of ``data``."""
    sock.sendall(data)


def _make_tel(drone_id: str, altitude: float, speed: float, timestamp: int) -> Telemetry:
    return Telemetry(drone_id, 0.0, 0.0, altitude, speed, timestamp)


def _make_tel_normal(drone_id: str, timestamp: int) -> Telemetry:
    return _make_tel(drone_id, NORMAL_ALTITUDE, NORMAL_SPEED, timestamp)


def run_normal(sock: socket.socket) -> None:
    """Send valid packets round-robin across a few drones, 1 ms apart."""
    log.info(
        "scenario=normal: sending %d valid packets across %d drones",
        NORMAL_PACKET_COUNT,
        DRONE_COUNT,
    )
    for i in range(NORMAL_PACKET_COUNT):
        tel = _make_tel_normal(f"drone-{i % DRONE_COUNT}", i)
        send_all(sock, packet_builder.valid_packet(tel))
        time.sleep(0.001)
    log.info("scenario=normal: done")


def run_fragmented(sock: socket.socket) -> None:
    """Send valid packets split into chunks of one to three bytes."""
    log.info(
        "scenario=fragmented: sending %d packets fragmented into small chunks",
        NORMAL_PACKET_COUNT,
    )
    for i in range(NORMAL_PACKET_COUNT):
        tel = _make_tel_normal(f"drone-{i % DRONE_COUNT}", i)
        packet = packet_builder.valid_packet(tel)
        for chunk in packet_builder.fragment(packet, i % _CHUNK_MOD + 1):
            send_all(sock, chunk)
    log.info("scenario=fragmented: done")


def run_corrupt(sock: socket.socket) -> None:
    """Mix garbage (30%), bad-CRC packets (20%) and valid packets (50%)."""
    log.info(
        "scenario=corrupt: sending %d iterations (30%% garbage, 20%% corrupt CRC, "
        "50%% valid)",
        CORRUPT_ITERATIONS,
    )
    for i in range(CORRUPT_ITERATIONS):
        slot = i % _CORRUPT_MOD
        if slot < GARBAGE_THRESHOLD:
            send_all(sock, packet_builder.garbage_bytes(GARBAGE_SIZE))
            continue
        tel = _make_tel_normal(f"corrupt-drone-{i % DRONE_COUNT}", i)
        if slot < CORRUPT_THRESHOLD:
            send_all(sock, packet_builder.corrupt_crc(tel))
        else:
            send_all(sock, packet_builder.valid_packet(tel))
    log.info("scenario=corrupt: done")


def run_stress(sock: socket.socket) -> None:
    """Send valid packets as fast as possible for a fixed duration."""
    log.info("scenario=stress: max-rate send for %ss", STRESS_DURATION_SEC)
    start = time.monotonic()
    deadline = start + STRESS_DURATION_SEC
    count = 0
    while time.monotonic() < deadline:
        send_all(sock, packet_builder.valid_packet(_make_tel_normal("stress-drone", count)))
        count += 1
    elapsed = time.monotonic() - start
    rate = count / elapsed if elapsed > 0 else 0.0
    log.info("scenario=stress: done. sent=%d rate=%.0f pkt/s", count, rate)


def run_alert(sock: socket.socket) -> None:
    """Send packets above both the altitude and the speed limit."""
    log.info(
        "scenario=alert: sending packets above thresholds "
        "(altitude=%.1f>%.1f, speed=%.1f>%.1f)",
        ALERT_ALTITUDE,
        DEFAULT_ALTITUDE_LIMIT,
        ALERT_SPEED,
        DEFAULT_SPEED_LIMIT,
    )
    for drone in range(ALERT_DRONE_COUNT):
        for index in range(ALERT_PACKETS_PER_DRONE):
            timestamp = drone * ALERT_PACKETS_PER_DRONE + index
            tel = _make_tel(f"alert-drone-{drone}", ALERT_ALTITUDE, ALERT_SPEED, timestamp)
            send_all(sock, packet_builder.valid_packet(tel))
    log.info("scenario=alert: done")


def run_multi_drone(sock: socket.socket) -> None:
    """Send a batch of packets for each of many distinct drones."""
    log.info(
        "scenario=multi-drone: %d unique drones, %d packets each = %d total",
        MULTI_DRONE_COUNT,
        MULTI_PACKETS_PER_DRONE,
        MULTI_DRONE_COUNT * MULTI_PACKETS_PER_DRONE,
    )
    for drone in range(MULTI_DRONE_COUNT):
        for index in range(MULTI_PACKETS_PER_DRONE):
            timestamp = drone * MULTI_PACKETS_PER_DRONE + index
            tel = _make_tel_normal(f"multi-{drone}", timestamp)
            send_all(sock, packet_builder.valid_packet(tel))
    log.info("scenario=multi-drone: done. expected_drones=%d", MULTI_DRONE_COUNT)


def run_interleaved(sock: socket.socket) -> None:
    """Send packets for several drones in round-robin order."""
    total = INTERLEAVED_DRONE_COUNT * INTERLEAVED_ROUNDS
    log.info(
        "scenario=interleaved: %d drones, %d rounds round-robin = %d total",
        INTERLEAVED_DRONE_COUNT,
        INTERLEAVED_ROUNDS,
        total,
    )
    for round_index in range(INTERLEAVED_ROUNDS):
        for drone in range(INTERLEAVED_DRONE_COUNT):
            timestamp = round_index * INTERLEAVED_DRONE_COUNT + drone
            tel = _make_tel_normal(f"inter-{drone}", timestamp)
            send_all(sock, packet_builder.valid_packet(tel))
    log.info("scenario=interleaved: done")


SCENARIOS: dict[str, Callable[[socket.socket], None]] = {
    "normal": run_normal,
    "fragmented": run_fragmented,
    "corrupt": run_corrupt,
    "stress": run_stress,
    "alert": run_alert,
    "multi-drone": run_multi_drone,
    "interleaved": run_interleaved,
}


def run_all(sock: socket.socket) -> None:
    """Run every scenario in sequence over the same connection."""
    log.info("scenario=all: running %d scenarios in sequence", len(SCENARIOS))
    for name, scenario in SCENARIOS.items():
        log.info("scenario=all: starting '%s'", name)
        scenario(sock)
        log.info("scenario=all: finished '%s'", name)
    log.info("scenario=all: all scenarios complete")


COMMANDS: dict[str, Callable[[socket.socket], None]] = {**SCENARIOS, "all": run_all}


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO, format="[%(asctime)s] [%(levelname)s] %(message)s"
    )


def main(argv: list[str] | None = None) -> int:
    """Run one scenario against the server; return the process exit status."""
    _configure_logging()
    try:
        args = parse_args(sys.argv[1:] if argv is None else list(argv))
    except ValueError as exc:
        log.error("%s", exc)
        return 1

    if not args.scenario:
        log.error("usage: drone_client --scenario <name> [--host <ip>] [--port <n>]")
        log.error("scenarios: %s", ", ".join(COMMANDS))
        return 1

    scenario = COMMANDS.get(args.scenario)
    if scenario is None:
        log.error("unknown scenario '%s'", args.scenario)
        return 1

    try:
        sock = tcp_connect(args.host, args.port)
    except (OSError, ValueError) as exc:
        log.error("connection failed: %s", exc)
        return 1

    log.info("connected to %s:%d", args.host, args.port)
    with sock:
        try:
            scenario(sock)
        except Exception as exc:
            log.error("scenario '%s' failed: %s", args.scenario, exc)
            return 1
    log.info("disconnected from %s:%d", args.host, args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())