from setuptools import setup, find_packages

setup(
    name="ipstat",
    version="1.0.1",
    description="IPv4 packet statistics with a record filter language",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "click>=8.0.0",
        "scapy>=2.5.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "ipstat=ipstat_cli.main:cli",
        ],
    },
    python_requires=">=3.8",
)
