#!/usr/bin/env python3
"""
Setup script for flexihmm
"""

from pathlib import Path

from setuptools import find_packages, setup

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
long_description = ""
if readme_file.exists():
    long_description = readme_file.read_text(encoding='utf-8')

# Read version from flexihmm/__init__.py
version = "1.0.0"
init_file = Path(__file__).parent / "flexihmm" / "__init__.py"
if init_file.exists():
    for line in init_file.read_text(encoding='utf-8').split('\n'):
        if line.startswith('__version__'):
            version = line.split('=')[1].strip().strip('"').strip("'")
            break

BASE_REQUIREMENTS = [
    "tabulate>=0.9.0",
]

EXTRAS = {
    "test": ["pytest>=7.0.0"],
}

EXTRAS["dev"] = sorted(
    set(
        EXTRAS["test"]
        + [
            "black>=22.0.0",
            "flake8>=4.0.0",
        ]
    )
)


setup(
    name="flexihmm",
    version=version,
    description="Hidden Markov Model part-of-speech tagger with Viterbi decoding",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=BASE_REQUIREMENTS,
    extras_require=EXTRAS,
    entry_points={
        "console_scripts": [
            "flexihmm=flexihmm.__main__:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
        "Topic :: Text Processing :: Linguistic",
    ],
    keywords="nlp, pos-tagging, hmm, viterbi",
    zip_safe=False,
)
