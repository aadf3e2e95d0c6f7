[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fieldplan"
version = "0.1.0"
description = "Coverage path planning over field boundary images, with occupancy-grid map loading and saving."
requires-python = ">=3.10"
keywords = [
    "path planning",
    "coverage planning",
    "occupancy grid",
    "bezier",
    "robotics",
    "agriculture",
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
    "Topic :: Scientific/Engineering",
    "Topic :: Scientific/Engineering :: Image Processing",
]
dependencies = [
    "pillow",
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pillow",
    "pyyaml",
]

[project.scripts]
fieldplan-coverage = "fieldplan.coverage:main"
fieldplan-map-server = "fieldplan.map_server:main"
fieldplan-map-saver = "fieldplan.map_saver:main"

[tool.hatch.build.targets.wheel]
packages = ["fieldplan"]

[tool.hatch.build.targets.sdist]
include = ["fieldplan", "tests"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
