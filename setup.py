"""Setup configuration for agentdeck package."""

from setuptools import setup, find_packages

setup(
    name="agentdeck",
    version="0.1.0",
    description="Interactive terminal controller for a team of LLM agents",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0.0",
        "python-dotenv>=1.0.0",
        "click>=8.1.0",
        "rich>=13.0.0",
        "prompt_toolkit>=3.0.0",
        "PyYAML>=6.0",
        "httpx>=0.25.0",
        "boto3>=1.34.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
            "pytest-mock>=3.11.0",
            "ruff>=0.1.0",
            "mypy>=1.5.0",
            "black>=23.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "agentdeck=agentdeck.app:main",
        ],
    },
)
