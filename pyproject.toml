[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "swapdecode"
version = "0.1.0"
description = "Decode Pump AMM, Pump.fun and Raydium swap and pool events from Solana transaction updates"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "solana",
    "dex",
    "swap",
    "pump.fun",
    "pump-amm",
    "raydium",
    "transaction",
    "decoder",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["swapdecode"]

[tool.hatch.build.targets.sdist]
include = ["swapdecode", "tests", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
