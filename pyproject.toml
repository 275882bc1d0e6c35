[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ogcfilter"
version = "0.1.0"
description = "Translate OGC Filter Encoding XML into PostGIS SQL WHERE clauses"
requires-python = ">=3.10"
dependencies = []
keywords = ["ogc", "filter-encoding", "wfs", "postgis", "sql", "gis"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: GIS",
    "Topic :: Database",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ogcfilter"]

[tool.pytest.ini_options]
addopts = "-ra"
