[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "asteroidnet"
version = "0.1.0"
description = "Networked multiplayer Asteroids with a server simulation and interpolating clients over a small UDP session protocol"
requires-python = ">=3.11"
keywords = ["asteroids", "multiplayer", "game", "udp", "netcode", "pygame"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: MacOS X",
    "Environment :: Win32 (MS Windows)",
    "Environment :: X11 Applications",
    "Framework :: AsyncIO",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Arcade",
]
dependencies = [
    "pygame",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
asteroids = "asteroidnet.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["asteroidnet"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
