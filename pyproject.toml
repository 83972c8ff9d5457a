[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "spdpsu"
version = "0.1.0"
description = "Asyncio client for SPD3303X programmable power supplies over their TCP command socket"
requires-python = ">=3.10"
dependencies = []
keywords = ["scpi", "power supply", "spd3303x", "lab automation", "instrument", "asyncio"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Framework :: AsyncIO",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Instrument Drivers",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
spdpsu = "spdpsu.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["spdpsu"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
