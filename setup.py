#!/usr/bin/env python3
"""
Setup script for Gesture Snake
"""

from pathlib import Path

from setuptools import setup, find_packages


def read_requirements():
    """Read runtime requirements from requirements.txt"""
    requirements = Path(__file__).parent / "requirements.txt"
    with open(requirements, "r") as f:
        return [line.strip() for line in f if line.strip() and not line.startswith("#")]


setup(
    name="gesture-snake",
    version="0.1.0",
    description="Snake game steered by webcam hand gestures",
    packages=find_packages(include=["gesture_snake", "gesture_snake.*"]),
    python_requires=">=3.9",
    install_requires=read_requirements(),
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "gesture-snake=gesture_snake.main:cli",
        ],
    },
)
