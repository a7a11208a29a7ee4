[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kartoffel"
version = "0.1.0"
description = "Simulated controller board pieces: EEPROM chunk heap, board ports and log, DS3231 clock registers, and BMP images"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "home-automation",
    "eeprom",
    "ds3231",
    "rtc",
    "bmp",
    "simulator",
]
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
    "Topic :: Home Automation",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
    "Topic :: Software Development :: Embedded Systems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["kartoffel"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
