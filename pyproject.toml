[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lrptdemod"
version = "0.1.0"
description = "QPSK/DOQPSK/IDOQPSK demodulation, CLAHE and display helpers for Meteor-M LRPT weather satellite signals"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "lrpt",
    "meteor",
    "qpsk",
    "oqpsk",
    "demodulator",
    "costas",
    "rrc",
    "clahe",
    "weather satellite",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Telecommunications Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Ham Radio",
    "Topic :: Scientific/Engineering :: Image Processing",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["lrptdemod"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
