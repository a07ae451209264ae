from setuptools import find_packages, setup

setup(
    name="sb0-installer",
    version="0.1.0",
    description="Installer for the sb0 CLI, its wheels and its templates",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.10",
    install_requires=[
        "requests",
        "urllib3",
        "rich",
        "platformdirs",
        "packaging",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
        ],
    },
    entry_points={
        "console_scripts": [
            "sb0-install=sb0_installer.cli:cli",
        ],
    },
)
