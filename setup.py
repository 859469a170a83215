"""Setup script for docs-crawler package."""

from setuptools import setup, find_packages

setup(
    name="docs-crawler",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    py_modules=["main"],
    install_requires=[
        "crawl4ai",
        "python-dotenv",
        "openai>=1.6.0",
        "pydantic>=2.0",
        "qdrant-client>=1.10.0",
        "sentence-transformers>=2.2.0",
        "numpy",
        "beautifulsoup4",
        "html2text",
        "mcp>=1.2.0,<2",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "docs-crawler=main:main",
        ],
    },
    python_requires=">=3.11",
)
