"""Framed drone telemetry over TCP: codec, stream parser, alert processing, server and test client."""

__version__ = "0.1.0"