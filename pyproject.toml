[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "schedsim"
version = "0.1.0"
description = "Discrete-event CPU/IO scheduling simulator with task trace generation and pluggable scheduling policies"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "scheduling",
    "simulator",
    "operating-systems",
    "discrete-event",
    "education",
    "trace-generation",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education",
    "Topic :: System :: Operating System",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
schedsim-sim = "schedsim.sim:main"
schedsim-run = "schedsim.runner:main"
schedsim-trace-gen = "schedsim.trace_gen:main"
schedsim-legacy-trace-gen = "schedsim.legacy_trace_gen:main"

[tool.hatch.build.targets.wheel]
packages = ["schedsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
