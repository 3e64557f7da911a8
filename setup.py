# setup.py
from setuptools import setup, find_namespace_packages

setup(
    name="synthizer",
    version="0.1.0",
    description="A small functional scripting language for additive and procedural audio synthesis",
    packages=find_namespace_packages(include=["synthizer", "synthizer.*"]),
    python_requires=">=3.10",
    install_requires=[
        "numpy",
    ],
    extras_require={
        "test": ["pytest", "hypothesis"],
    },
    zip_safe=False,
)
