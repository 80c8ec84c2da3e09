"""
Setup script for fiddle-runner
"""

from setuptools import setup, find_packages
import pathlib

# Read the README file
HERE = pathlib.Path(__file__).parent
README = (HERE / "README.md").read_text(encoding="utf-8")

setup(
    name="fiddle-runner",
    version="0.1.0",
    description="Sandboxed execution orchestrator for template fiddles",
    long_description=README,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.11.5",
        "pydantic-settings>=2.12.0",
        "pyyaml>=6.0.1",
        "structlog>=24.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "fiddle-run=fiddle_runner.interfaces.cli.main:entry_point",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: POSIX",
        "License :: OSI Approved :: MIT License",
    ],
    keywords="sandbox fiddle code-execution worker",
)
