# dronestream

A TCP server and a test client for drone telemetry. The server reads framed
packets from a byte stream and checks each one. It logs an alert whenever a
drone goes over its altitude or speed limit, and logs again when the drone
comes back under the limit.

## Wire format

Each packet is a frame. All integers and doubles are little-endian.

| Field   | Size | Notes                                                                                   |
|---------|------|-----------------------------------------------------------------------------------------|
| header  | 2    | `0xAA 0x55`                                                                             |
| length  | 2    | payload size; the parser rejects lengths above 4096                                     |
| payload | n    | id length (u16), id bytes, latitude, longitude, altitude, speed (f64), timestamp (u64) |
| crc     | 2    | CRC-16/XMODEM over header + length + payload                                            |

The stream parser (`dronestream.stream_parser.StreamParser`) works as follows:

- It finds the header again after garbage bytes.
- It skips frames whose length is above `MAX_PAYLOAD` (4096).
- It skips frames with a bad CRC and counts them in `crc_fail_count`.
- It handles packets split across any number of `feed` calls.

After it rejects a frame, it starts searching again one byte after the
rejected header.

## Install

```
pip install .
```

## Running the server

```
drone-server --port 9000
```

The server listens on all IPv4 interfaces on the given port. The default port
is 9000. A port outside 1–65535, or one that is not a number, is an error.

The server runs three threads, one per stage: receive, parse and process. Each
pair of stages is joined by a bounded `BlockingQueue` with a capacity of 256.

Alerts are logged as warnings, for example:

```
[ALERT] drone=drone-1 type=ALTITUDE state=ENTERED
```

The default limits are altitude 120 and speed 50.

Stop the server with Ctrl-C or SIGTERM. On shutdown it logs these counters:

- packets parsed
- packets processed
- CRC failures
- number of drones seen

## Running the client

```
drone-client --scenario normal --host 127.0.0.1 --port 9000
```

`--host` must be an IPv4 address; host names are not resolved. The defaults
are `127.0.0.1` and port 9000.

| Scenario      | What it sends                                                             |
|---------------|---------------------------------------------------------------------------|
| `normal`      | 1000 valid packets, round-robin over 5 drones, 1 ms apart                 |
| `fragmented`  | 1000 valid packets, each split into chunks of 1 to 3 bytes                |
| `corrupt`     | 100 sends: 30% garbage bytes, 20% packets with a bad CRC, 50% valid       |
| `stress`      | valid packets as fast as possible for 10 seconds, then logs the rate      |
| `alert`       | 3 drones × 5 packets at altitude 150 and speed 60, so alerts are raised   |
| `multi-drone` | 100 drones, 10 packets each                                               |
| `interleaved` | 5 drones, 50 rounds, round-robin                                          |
| `all`         | every scenario above, one after another, over the same connection         |

Both commands return exit status 1 on a bad option, a failed connection or a
failed scenario.

## Using it as a library

```python
from dronestream.domain import Telemetry
from dronestream.codec import serialize
from dronestream.stream_parser import make_telemetry_parser

received = []
parser = make_telemetry_parser(received.append)

packet = serialize(Telemetry("drone-1", 51.5, -0.12, 80.0, 12.5, 1700000000))
parser.feed(packet[:7])
parser.feed(packet[7:])

assert received[0].drone_id == "drone-1"
print(parser.crc_fail_count)
```

### Modules

- `dronestream.codec`
  - `serialize(telemetry)` builds a whole packet. It raises `ValueError` if the
    drone id is too long or the timestamp does not fit in 64 unsigned bits.
  - `deserialize(payload)` decodes a payload. It raises `MalformedPayloadError`
    if the payload is too short, and ignores trailing bytes.
- `dronestream.crc16`
  - `crc16(data)` computes CRC-16/XMODEM.
- `dronestream.stream_parser`
  - `StreamParser(on_packet)` passes the raw payload bytes of each valid frame
    to `on_packet`.
  - `make_telemetry_parser(on_telemetry)` decodes each payload and passes the
    resulting `Telemetry` to `on_telemetry`. It silently drops payloads that
    fail to decode.
- `dronestream.domain`
  - `Telemetry`, `AlertPolicy`, `AlertType` and `AlertTransition` are the data
    types.
  - `Drone.update_from(telemetry, policy)` returns the alert transitions that
    the sample caused.
  - `ProcessTelemetry(repository, notifier, policy)` ties a `DroneRepository`
    and an `AlertNotifier` together.
- `dronestream.adapters`
  - `InMemoryDroneRepository` stores drones in a dictionary and is not locked.
    `len()` gives the number of drones.
  - `ConsoleAlertNotifier` logs transitions.
- `dronestream.blocking_queue`
  - `BlockingQueue(capacity)` is a bounded, closable FIFO queue for threads.
    `push` returns `False` once the queue is closed. `pop` returns `None` once
    the queue is closed and drained. Iterating over the queue drains it.
- `dronestream.tcp_server`
  - `TcpServer(port, queue, stop_event)` pushes received byte chunks onto the
    queue. Pass port 0 to get a free port; the `port` property gives the port
    that was bound.
  - `SignalHandler(stop_event)` is a context manager that sets the event on
    SIGINT or SIGTERM.
- `dronestream.packet_builder` builds test packets:
  - `valid_packet` builds a correct packet.
  - `corrupt_crc` builds a packet whose CRC bytes are inverted.
  - `garbage_bytes` returns deterministic bytes that never start with `0xAA`.
  - `oversize_length` returns a header with the length field set to 5000.
  - `fragment` splits a packet into chunks.

## What it does not do

- The server serves one client connection at a time.
- Drone state is kept in memory only and is lost when the server stops.
- Alerts are only written to the log; they are not sent anywhere else.
- The server and client use IPv4 only.

## Tests

```
pip install .[test]
pytest
```