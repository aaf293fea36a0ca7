from setuptools import setup, find_packages

setup(
    name="autospec",
    version="0.3.0",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "playwright>=1.40.0",
        "openai>=1.0.0",
        "pydantic>=2.0",
        "Pillow>=10.0.0",
        "rich",
        "beautifulsoup4>=4.12.0",
        "python-dotenv>=1.0.0",
        "PyYAML>=6.0",
        "aiofiles>=23.2.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "autospec=autospec.cli:main",
        ],
    },
    python_requires=">=3.9",
    description="Autospec - AI-driven exploratory QA that writes replayable Playwright tests",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
