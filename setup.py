#!/usr/bin/env python3
"""
Setup script for Rippler
"""

from setuptools import setup, find_packages

setup(
    name="rippler",
    version="0.1.0",
    description="Command line client for the ledger JSON-over-WebSocket API",
    packages=find_packages(include=["rippler", "rippler.*", "shared", "shared.*"]),
    install_requires=[
        "websockets==15.0",
        "click==8.1.7",
        "typer==0.12.3",
        "rich==13.9.2",
        "PyYAML==6.0.2",
    ],
    extras_require={
        "test": [
            "pytest==8.4.2",
            "pytest-asyncio==1.2.0",
        ],
    },
    python_requires=">=3.10",
    entry_points={
        'console_scripts': [
            'rippler=rippler.rippler_cli:main',
        ],
    },
)
