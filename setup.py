"""Setup configuration for bulkmod."""

from setuptools import setup, find_packages

setup(
    name="bulkmod",
    version="0.0.1",
    description="Bulk moderation operations with an interactive operator console",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "PyYAML",
        "prompt_toolkit",
        "aiosqlite",
        "jsonschema",
        "python-dotenv",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "bulkmod=bulkmod.main:main",
        ],
    },
)
