[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dockwatch"
version = "0.1.0"
description = "Monitor and control containers on several Docker hosts: stats, inspection, events, and fan-out to SSE sessions and WebSocket-style clients."
requires-python = ">=3.10"
keywords = ["docker", "containers", "monitoring", "events", "sse", "websocket", "asyncio"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: System :: Monitoring",
]
dependencies = [
    "httpx",
    "bcrypt",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["dockwatch"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
