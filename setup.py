from setuptools import setup, find_packages


setup(
    name="asice",
    version="0.1",
    packages=find_packages(include=["asice", "asice.*"]),
    description="Writer for signed, optionally encrypted ASiC-E containers.",
    author="vercingetorx",
    python_requires=">=3.8",
    install_requires=[
        "pycryptodomex>=3.23.0",
        "argon2-cffi>=23.1.0",
    ],
)
