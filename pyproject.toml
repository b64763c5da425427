[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "esdbkit"
version = "0.1.0"
description = "Data types for an event-store client: events, stream positions, stream metadata, subscription filters, persistent subscription info and errors."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "event-sourcing",
    "event-store",
    "streams",
    "subscriptions",
    "stream-metadata",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["esdbkit"]

[tool.hatch.build.targets.sdist]
include = ["esdbkit", "tests", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
