"""setuptools setup for BrewLog.

Install for development:
    pip install -e ".[test]"
"""

from setuptools import setup

setup(
    name="BrewLog",
    version="0.1.0",
    packages=[
        "brewlog",
        "brewlog.audio",
        "brewlog.database",
        "brewlog.sessions",
        "brewlog.timer",
    ],
    python_requires=">=3.10",
    install_requires=[
        "PyQt6",
        "numpy",
        "SQLAlchemy>=2.0",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
