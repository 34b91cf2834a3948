[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dronestream"
version = "0.1.0"
description = "Streaming parser, processing pipeline and test client for framed drone telemetry over TCP"
requires-python = ">=3.10"
dependencies = []
keywords = ["drone", "telemetry", "tcp", "stream-parser", "crc16", "framing"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
drone-server = "dronestream.server:main"
drone-client = "dronestream.client:main"

[tool.hatch.build.targets.wheel]
packages = ["dronestream"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
