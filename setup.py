# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Setup configuration for VPM Package Dependency Manager
"""

from setuptools import setup, find_packages

setup(
    name="vpm",
    version="1.0.0",
    description="Package dependency resolver and journaled module installer",
    author="Jason Cafarelli",
    packages=find_packages(include=["src", "src.vpm", "src.signing"]),
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2.0.0",
        "httpx>=0.24.0",
        "PyYAML>=6.0",
        "python-gnupg>=0.5.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "vpm=src.vpm.cli:run",
        ]
    },
)
