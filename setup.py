import os
from setuptools import setup, find_packages

def parse_requirements(requirements):
    with open(requirements) as f:
        return [l.strip('\n') for l in f if l.strip('\n') and not l.startswith('#')]

requirements = parse_requirements(os.path.join(os.path.dirname(os.path.abspath(__file__)), "requirements.txt"))

setup(
    name='coursehub_backend',
    version='0.1.0',
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=7.4", "httpx>=0.25"],
    },
    package_dir={"": "src"},
    packages=find_packages("src"),
    entry_points={
        "console_scripts": [
            "coursehub=coursehub_backend.cli.cli:cli",
        ],
    }
)
