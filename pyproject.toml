[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bvhkit"
version = "0.1.0"
description = "Bounding volume hierarchy tools: ray traversal, leaf collapsing, SAH cost and treelet schedules"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["bvh", "ray tracing", "sah", "obb", "acceleration structure", "geometry"]
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
    "Topic :: Multimedia :: Graphics :: 3D Rendering",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["bvhkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
