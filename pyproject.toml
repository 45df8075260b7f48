[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "runeaim"
version = "0.1.0"
description = "Rune detection post-processing, rotation curve fitting, aiming geometry and fixed-length serial packets for robot gimbal aiming"
requires-python = ">=3.10"
keywords = ["robotics", "vision", "serial", "curve-fitting", "yolox", "gimbal", "nms"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Recognition",
    "Topic :: Scientific/Engineering :: Mathematics",
    "Topic :: Terminals :: Serial",
]
dependencies = [
    "numpy",
    "scipy",
    "pyserial",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["runeaim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
