from setuptools import find_packages, setup

setup(
    name="subtitle-ingest",
    version="0.1.0",
    packages=find_packages(include=["subtitle_ingest", "subtitle_ingest.*"]),
    install_requires=[line for line in open("requirements-core.txt").read().splitlines() if line],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    python_requires=">=3.9",
    entry_points={
        "console_scripts": [
            "subtitle-ingest=subtitle_ingest.cli:main",
        ],
    },
)
