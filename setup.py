#!/usr/bin/env python3

from pathlib import Path

from setuptools import find_packages, setup

packages = find_packages(exclude=("tests*",))
package_data = {pkg: ("py.typed",) for pkg in packages}
package_data["pum"] = ("py.typed", "config/*.yml")
install_requires = Path("requirements.txt").read_text().splitlines()

setup(
    name="Pum",
    python_requires=">=3.9",
    version="0.1.0",
    description="Completion menu orchestrator",
    long_description=Path("README.md").read_text(),
    long_description_content_type="text/markdown",
    packages=packages,
    package_data=package_data,
    install_requires=install_requires,
)
