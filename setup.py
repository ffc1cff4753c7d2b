"""
argsinto: Convertible Arguments for Python Functions

Rewrites a function so each explicit parameter becomes a PEP 695 type
parameter bounded by Into[<declared type>], and the body converts every
argument back into its declared type before running.
"""

from setuptools import setup, find_packages

setup(
    name="argsinto",
    version="0.1.0",
    description="Decorator that lets functions accept any argument convertible into the declared type",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    author="argsinto developers",
    python_requires=">=3.12",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[],
    extras_require={
        "dev": [
            "pytest>=7.0",
        ]
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Software Development :: Code Generators",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
)
