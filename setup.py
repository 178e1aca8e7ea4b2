"""
Setup script for the bragdoc achievement pipeline.

Allows development installation with `pip install -e .`
Test dependencies: `pip install -e ".[test]"`
"""

from setuptools import setup, find_packages

setup(
    name="bragdoc-pipeline",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2.0",
        "langchain-core>=0.3",
        "langchain-openai>=0.2",
        "langchain-anthropic>=0.2",
        "openai>=1.0",
        "tenacity>=8.2",
        "python-dotenv>=1.0",
        "json-repair>=0.25",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
            "pytest-mock>=3.12",
        ],
    },
)
