from setuptools import find_packages, setup

setup(
    name="notifyrun",
    version="0.1.0",
    description="Run a command whenever watched files or directories change",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "click",
        "toml",
        "pyyaml",
        "rich",
        "watchdog>=4.0",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "notifyrun=notifyrun.cli:main"
        ]
    },
)
