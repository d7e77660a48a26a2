"""
Setup script for report-service project.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_packages

setup(
    name="report-service",
    version="0.1.0",
    packages=find_packages(include=["report_service", "report_service.*"]),
    package_data={"report_service": ["templates/*.html"]},
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.115.3",
        "uvicorn[standard]>=0.27",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "playwright>=1.40",
        "python-multipart>=0.0.9",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
            "httpx>=0.25",
            "pypdf>=4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "report-service=report_service.__main__:main",
        ],
    },
)
