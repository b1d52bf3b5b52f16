"""
Setup script for logos-engine.

LOGOS is the adaptive-learning decision engine behind a language-learning
application. It serves four roles:

1. Ability Estimation - IRT ability and item calibration
2. Scheduling - FSRS-4 spaced repetition and mastery stages
3. Prioritisation - Learning-queue ranking from corpus statistics
4. Diagnosis - Skill-component bottleneck detection

The 'logos' command exposes algorithm validation and corpus tools.
"""

from setuptools import find_packages, setup

setup(
    name="logos-engine",
    version="1.0.0",
    description="Adaptive-learning decision engine: IRT, FSRS, PMI and bottleneck analysis",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="LOGOS",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Numerics
        "numpy>=1.24.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "logos=logos.cli:run",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning spaced-repetition irt psychometrics education",
)
