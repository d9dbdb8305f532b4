"""MORP setup - commitments, nullifiers and private routing."""
from setuptools import setup, find_packages

setup(
    name="morp",
    version="2.1.0",
    description="MORP: commitment, nullifier and private-routing core",
    packages=find_packages(include=["morp", "morp.*", "morp_cli", "morp_cli.*"]),
    python_requires=">=3.10",
    install_requires=[
        "click>=8.0",
        "cryptography>=41.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "morp=morp_cli.main:cli",
        ],
    },
)
