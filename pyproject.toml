[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "zaplog"
version = "0.1.0"
description = "Leveled logging building blocks: dynamic levels, URL-addressed sinks, combined and buffered write syncers."
requires-python = ">=3.10"
dependencies = []
keywords = ["logging", "levels", "sinks", "write-syncer", "buffering"]
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
    "Topic :: System :: Logging",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
zaplog-readme = "zaplog.readme:main"

[tool.hatch.build.targets.wheel]
packages = ["zaplog"]

[tool.hatch.build.targets.sdist]
include = ["zaplog", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
