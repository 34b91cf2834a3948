"""Telemetry server: receive, parse and process telemetry in a three-stage pipeline."""

from __future__ import annotations

import logging
import re
import sys
import threading
from dataclasses import dataclass, field

from .adapters import ConsoleAlertNotifier, InMemoryDroneRepository
from .blocking_queue import BlockingQueue
from .domain import AlertPolicy, ProcessTelemetry, Telemetry
from .stream_parser import StreamParser, make_telemetry_parser
from .tcp_server import SignalHandler, TcpServer

log = logging.getLogger(__name__)

DEFAULT_PORT = 9000
MIN_PORT = 1
MAX_PORT = 65535
QUEUE_CAPACITY = 256
LOG_INTERVAL = 1000

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _parse_int(text: str) -> int:
    """Parse the leading integer of ``text``, ignoring anything after it."""
    match = _LEADING_INT.match(text)
    if match is None:
        raise ValueError(f"invalid --port value {text!r}")
    return int(match.group(1))


def parse_port(argv: list[str]) -> int:
    """Return the value of the first ``--port`` option, or the default port.

    Raises ``ValueError`` if the value is not a number or is out of range.
    """
    for option, value in zip(argv, argv[1:]):
        if option == "--port":
            port = _parse_int(value)
            if not MIN_PORT <= port <= MAX_PORT:
                raise ValueError(
                    f"--port value {port} out of range ({MIN_PORT}-{MAX_PORT})"
                )
            return port
    return DEFAULT_PORT


@dataclass
class Pipeline:
    """Queues between the pipeline stages and their progress counters."""

    raw_queue: BlockingQueue[bytes] = field(
        default_factory=lambda: BlockingQueue(QUEUE_CAPACITY)
    )
    parsed_queue: BlockingQueue[Telemetry] = field(
        default_factory=lambda: BlockingQueue(QUEUE_CAPACITY)
    )
    packets_parsed: int = 0
    packets_processed: int = 0


def run_parse_stage(pipeline: Pipeline, parser: StreamParser) -> None:
    """Feed raw chunks to the parser until the raw queue is closed."""
    last_logged = 0
    for chunk in pipeline.raw_queue:
        parser.feed(chunk)
        count = pipeline.packets_parsed
        if count // LOG_INTERVAL > last_logged // LOG_INTERVAL:
            log.info(
                "[parse] packets_parsed=%d crc_failures=%d",
                count,
                parser.crc_fail_count,
            )
            last_logged = count
    pipeline.parsed_queue.close()


def run_process_stage(
    pipeline: Pipeline,
    use_case: ProcessTelemetry,
    repo: InMemoryDroneRepository,
) -> None:
    """Apply every parsed telemetry sample until the parsed queue is closed."""
    for telemetry in pipeline.parsed_queue:
        use_case.execute(telemetry)
        pipeline.packets_processed += 1
        count = pipeline.packets_processed
        if count % LOG_INTERVAL == 0:
            log.info(
                "[process] packets_processed=%d active_drones=%d", count, len(repo)
            )


def run_pipeline(
    server: TcpServer,
    pipeline: Pipeline,
    parser: StreamParser,
    use_case: ProcessTelemetry,
    repo: InMemoryDroneRepository,
) -> None:
    """Run the receive, parse and process stages on threads and wait for all."""
    threads = [
        threading.Thread(target=server.run, name="recv"),
        threading.Thread(target=run_parse_stage, args=(pipeline, parser), name="parse"),
        threading.Thread(
            target=run_process_stage, args=(pipeline, use_case, repo), name="process"
        ),
    ]
    for thread in threads:
        thread.start()
    for thread in reversed(threads):
        thread.join()


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO, format="[%(asctime)s] [%(levelname)s] %(message)s"
    )


def main(argv: list[str] | None = None) -> int:
    """Start the telemetry server; return the process exit status."""
    _configure_logging()
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        port = parse_port(args)
    except ValueError as exc:
        log.error("%s", exc)
        return 1

    policy = AlertPolicy()
    repo = InMemoryDroneRepository()
    notifier = ConsoleAlertNotifier()
    use_case = ProcessTelemetry(repo, notifier, policy)
    pipeline = Pipeline()
    stop_event = threading.Event()

    with SignalHandler(stop_event):
        try:
            server = TcpServer(port, pipeline.raw_queue, stop_event)
        except OSError as exc:
            log.error("TcpServer: %s", exc)
            return 1

        log.info(
            "drone_server starting on port %d. altitude_limit=%.1fm speed_limit=%.1fm/s",
            port,
            policy.altitude_limit,
            policy.speed_limit,
        )

        def on_telemetry(telemetry: Telemetry) -> None:
            pipeline.parsed_queue.push(telemetry)
            pipeline.packets_parsed += 1

        parser = make_telemetry_parser(on_telemetry)
        run_pipeline(server, pipeline, parser, use_case, repo)

        log.info(
            "Shutdown complete. packets_parsed=%d packets_processed=%d "
            "crc_failures=%d active_drones=%d",
            pipeline.packets_parsed,
            pipeline.packets_processed,
            parser.crc_fail_count,
            len(repo),
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())