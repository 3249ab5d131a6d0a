from setuptools import setup, find_packages

setup(
    name="connect4engine",
    version="0.2.0",
    description="Connect Four move-selection engine with easy, moderate and hard tiers",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "gymnasium",  # ConnectFourEnv with an engine opponent
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "connect4engine=connect4engine.interfaces.cli:main",
        ],
    },
)
