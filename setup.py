"""Setup configuration for the FixEmbed Discord bot."""

from setuptools import setup, find_packages

setup(
    name="fixembed",
    version="1.1.7",
    description="A Discord bot that fixes social media embeds by rewriting links",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "py-cord>=2.6",
        "aiosqlite>=0.20",
        "python-dotenv>=1.0",
        "PyYAML>=6.0",
        "prompt_toolkit>=3.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "fixembed=fixembed.main:main",
        ],
    },
)
