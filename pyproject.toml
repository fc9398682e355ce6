[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "multirole"
version = "0.1.0"
description = "Building blocks for a duelling card game server: protocol packets, duel core message handling, banlists, card databases and replay storage."
requires-python = ">=3.10"
dependencies = []
keywords = ["card game", "duel", "server", "banlist", "replay", "protocol"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Board Games",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["multirole"]

[tool.pytest.ini_options]
addopts = "-ra"
