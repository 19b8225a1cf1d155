[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "davisrx"
version = "0.1.0"
description = "Demodulator and packet parser for Davis Instruments weather station radio transmissions"
requires-python = ">=3.10"
dependencies = []
keywords = ["davis", "weather", "sdr", "fsk", "demodulation", "crc", "frequency-hopping"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Atmospheric Science",
    "Topic :: Communications :: Ham Radio",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["davisrx"]

[tool.pytest.ini_options]
addopts = "-ra"
