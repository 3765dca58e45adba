"""
setup.py - Project Setup
Installs the commitment engine, the auth client and their dependencies.

  pip install -e .[test]
  python -m pytest tests/ -v
"""

from setuptools import setup

REQUIREMENTS = [
    "cryptography>=41.0",
    "PyJWT>=2.8",
]

TEST_REQUIREMENTS = [
    "pytest>=7.0",
]

setup(
    name="zkp-auth",
    version="1.0.0",
    description="Password commitment proofs and a headless auth client",
    python_requires=">=3.9",
    packages=["common", "engine", "client"],
    install_requires=REQUIREMENTS,
    extras_require={"test": TEST_REQUIREMENTS},
    entry_points={
        "console_scripts": [
            "zkp-auth=client.client_app:main",
        ],
    },
)
