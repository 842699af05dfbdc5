#!/usr/bin/env python

from setuptools import setup


VERSION = "0.1a1"

setup(
    name="xpathlet",
    version=VERSION,
    packages=["_xpathlet", "_xpathlet.xpath", "xpathlet"],
    python_requires=">=3.10",
    install_requires=["lxml"],
    extras_require={"test": ["pytest"]},
)
