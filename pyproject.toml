[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wmipc"
version = "6.5.0"
description = "Unix-socket IPC protocol and server for a tiling window manager: framed JSON messages, commands, queries and event subscriptions"
requires-python = ">=3.10"
dependencies = []
keywords = ["window-manager", "ipc", "unix-socket", "json", "tiling"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Desktop Environment :: Window Managers",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["wmipc"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
