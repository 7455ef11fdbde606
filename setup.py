"""Setuptools configuration for the portal application."""

from pathlib import Path

from setuptools import find_packages, setup


ROOT = Path(__file__).resolve().parent


def read_requirements(relative_path: str):
    """Read dependency lines from a requirements file."""

    requirements_path = ROOT / relative_path
    if not requirements_path.exists():
        return []

    return [
        line.strip()
        for line in requirements_path.read_text(encoding="utf-8").splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]


setup(
    name="portal-login",
    version="0.1.0",
    description="Flask login portal with signed-cookie sessions and flash messages",
    long_description=(ROOT / "README.md").read_text(encoding="utf-8"),
    long_description_content_type="text/markdown",
    packages=find_packages(include=["portal", "portal.*"]),
    include_package_data=True,
    package_data={"portal": ["templates/*.html", "static/*.css"]},
    install_requires=read_requirements("requirements.txt"),
    extras_require={"test": read_requirements("requirements-test.txt")},
    entry_points={"console_scripts": ["portal-server=portal.server:main"]},
    python_requires=">=3.10",
)
