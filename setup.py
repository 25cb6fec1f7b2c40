"""
filefetch
Single-file retrieval over TCP: one request, one status byte, one stream.
"""
from setuptools import setup, find_packages

setup(
    name="filefetch",
    version="1.0.0",
    description="Minimal TCP file retrieval server and client",
    packages=find_packages(exclude=["tests*"]),
    python_requires=">=3.10",
    install_requires=[
        "tqdm>=4.60",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "filefetch=filefetch.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: System Administrators",
        "Topic :: System :: Networking",
        "Programming Language :: Python :: 3.10",
    ],
)
