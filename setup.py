"""
Setup script for cadence-srs.

Cadence is the spaced-repetition scheduling engine behind a flashcard
study flow. It provides:

1. Card memory model - stability, difficulty, retrievability per card
2. Scheduling policies - stability/difficulty, ease factor, mastery score
3. Study pools - ordered, requeueing session queues of due cards
4. Collection statistics - due / learning / review counts

The engine is an in-process library: callers supply card states, grades
and the current time, and persist the returned states themselves.
"""

from setuptools import find_packages, setup

setup(
    name="cadence-srs",
    version="0.1.0",
    description="Spaced-repetition scheduling engine with session pools",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(include=["cadence", "cadence.*"]),
    python_requires=">=3.11",
    install_requires=[
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
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning spaced-repetition flashcards scheduling education",
)
