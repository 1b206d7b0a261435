[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "djournal"
version = "0.1.0"
description = "Segmented append-only commit log with retention policies and a small TCP broker"
requires-python = ">=3.10"
dependencies = []
keywords = ["commit-log", "journal", "segment", "append-only", "broker", "storage"]
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
    "Topic :: Database :: Database Engines/Servers",
    "Framework :: AsyncIO",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
djournal = "djournal.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["djournal"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
