#!/usr/bin/env python3
"""
Setup script for quantimport
"""

from setuptools import setup, find_packages
import os

# Read the README file for long description
def read_readme():
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return "Import transcript quantifications and summarize them to genes"

# Read requirements from file if it exists
def read_requirements():
    req_path = os.path.join(os.path.dirname(__file__), 'requirements.txt')
    if os.path.exists(req_path):
        with open(req_path, 'r', encoding='utf-8') as f:
            return [line.strip() for line in f.readlines() if line.strip() and not line.startswith('#')]
    return [
        'numpy>=1.24.0',
        'pandas>=2.0.0',
        'typer>=0.9.0',
        'rich>=13.0.0',
        'click>=8.1.0',
        'pyyaml>=6.0.0',
    ]

setup(
    name="quantimport",
    version="0.1.0",
    author="quantimport developers",
    author_email="quantimport@example.com",
    description="Import kallisto, Salmon, Sailfish and RSEM quantifications and summarize transcripts to genes",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    url="https://github.com/example/quantimport",
    packages=find_packages(include=['quantimport', 'quantimport.*']),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
    ],
    python_requires=">=3.11",
    install_requires=read_requirements(),
    extras_require={
        'dev': [
            'pytest>=7.4.0',
            'pytest-cov>=4.1.0',
            'black>=23.7.0',
            'flake8>=6.0.0',
            'mypy>=1.5.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'quantimport=quantimport.cli:app',
        ],
    },
    project_urls={
        "Bug Reports": "https://github.com/example/quantimport/issues",
        "Source": "https://github.com/example/quantimport",
    },
)
