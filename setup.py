"""Install the SALAK auth and API-key vault package."""

from setuptools import setup, find_packages

setup(
    name='salak',
    version='0.1.0',
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=[
        "fastapi",
        "pydantic>=2",
        "sqlalchemy>=2",
        "pyjwt",
        "requests",
        "cryptography",
        "python-json-logger",
        "click",
        "uvicorn",
    ],
    extras_require={
        'test': [
            "pytest",
            "httpx",
        ],
    },
    entry_points={
        'console_scripts': ['salak=salak.cli:cli'],
    },
    zip_safe=False
)
