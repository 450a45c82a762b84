"""Install the SeaMed Tracker inventory API."""

from setuptools import setup, find_packages

setup(
    name='seamed-api',
    version='0.1.0',
    packages=find_packages(include=['seamed', 'seamed.*']),
    python_requires='>=3.9',
    install_requires=[
        "fastapi>=0.110",
        "pydantic>=2.4",
        "sqlalchemy>=2.0",
        "pyjwt[crypto]>=2.8",
        "python-dateutil",
        "python-json-logger>=3.1",
    ],
    extras_require={
        'test': [
            "pytest",
            "httpx",
            "cryptography",
        ],
    },
    zip_safe=False
)
