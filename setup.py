# setup.py
from setuptools import find_packages, setup

setup(
    name="datacore",
    version="0.1.0",
    description="Generic data-access layer: entities, filters, paging, repositories and errors",
    packages=find_packages(include=["datacore", "datacore.*"]),
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "structlog>=24.1",
        "pydantic>=2.6",
        "pydantic-settings>=2.2",
        "sqlalchemy[asyncio]>=2.0.25",
    ],
    extras_require={
        "postgres": ["asyncpg>=0.29"],
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "aiosqlite>=0.20",
        ],
    },
)
