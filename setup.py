from setuptools import setup, find_packages

setup(
    name="shortlink-rule-store",
    version="0.1.0",
    packages=find_packages(include=["shortlink", "shortlink.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi",
        "httpx",
        "pydantic",
        "pydantic-settings",
        "uvicorn",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "respx",
        ],
    },
    entry_points={
        "console_scripts": [
            "shortlink-sweep=shortlink.app.cli:main",
        ],
    },
)
