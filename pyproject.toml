[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "analogtv"
version = "0.1.0"
description = "Building blocks for analogue television signals: filters, DANCE audio, Eurocrypt, copy protection pulses and sample file output"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "television",
    "analogue",
    "pal",
    "ntsc",
    "mac",
    "eurocrypt",
    "dance",
    "fir",
    "dsp",
    "sdr",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Video",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["analogtv"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
