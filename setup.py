# File: vcfprep/setup.py
# Location: vcfprep/vcfprep/setup.py
"""
Setup script for vcfprep.

This file configures how the package is built, installed, and what
dependencies are required.
"""

import os
from setuptools import setup, find_packages

# Load version from version.py without importing the module
version = {}
with open(os.path.join("vcfprep", "version.py")) as f:
    exec(f.read(), version)

# Read the README for the long description
this_dir = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(this_dir, "README.md"), encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="vcfprep",
    version=version["__version__"],
    description=(
        "Preprocess VCF files with bcftools: merge, PASS filter, normalize, "
        "deduplicate, sort and index."
    ),
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["vcfprep", "vcfprep.*"]),
    python_requires=">=3.8",
    install_requires=[
        "psutil",
    ],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["vcfprep=vcfprep.cli:main"]},
    include_package_data=True,
    package_data={"vcfprep": ["config.json"]},
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: POSIX :: Linux",
    ],
)
