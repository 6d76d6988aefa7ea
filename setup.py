#!/usr/bin/env python3
"""
Setup configuration for tubelink
Find YouTube videos for Apple Music and Spotify tracks, albums and playlists
"""

from setuptools import setup, find_packages

# Read README for long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Core requirements (always installed)
core_requirements = [
    "requests>=2.31.0",
    "beautifulsoup4>=4.12.0",
    "lxml>=5.0.0",
    "click>=8.2.0",
    "rich>=13.7.0",
    "rich-click>=1.8.0",
    "pyyaml>=6.0.1",
    "tqdm>=4.66.1",
    "python-dotenv>=1.0.0",
]

setup(
    name="tubelink",
    version="0.1.0",
    author="tubelink",
    description="Find YouTube videos for Apple Music and Spotify links",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio",
        "Topic :: Internet :: WWW/HTTP",
    ],
    python_requires=">=3.10",
    install_requires=core_requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "black>=23.11.0",
            "flake8>=6.1.0",
            "mypy>=1.7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "tubelink=tubelink.cli:main",
        ],
    },
    keywords="apple music spotify youtube playlist links cli",
)
