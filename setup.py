#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# File: setup.py
# Author: Wadih Khairallah
# Description: 
# Created: 2025-04-28 14:40:57
# Modified: 2025-06-02 18:27:13

from setuptools import setup, find_packages
from pathlib import Path

here = Path(__file__).parent

def get_version():
    version = {}
    exec((here / "dreamlens" / "__version__.py").read_text(), version)
    return version["__version__"]

def read_requirements():
    return [
        line.strip()
        for line in (here / "requirements.txt").read_text().splitlines()
        if line.strip() and not line.startswith("#")
    ]

setup(
    name="dreamlens",
    version=get_version(),
    author="Wadih Khairallah",
    author_email="woodyk@gmail.com",
    description="Dream journal analysis: keywords, emotions, symbols, categories and patterns",
    long_description=(here / "README.md").read_text(),
    long_description_content_type="text/markdown",
    url="https://github.com/woodyk/dreamlens",
    packages=find_packages(include=["dreamlens", "dreamlens.*"]),
    package_data={"dreamlens": ["data/*.json"]},
    install_requires=read_requirements(),
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "dreamlens = dreamlens.cli:main",
        ],
    },
    include_package_data=True,
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
