from setuptools import setup, find_packages

setup(
    name="pon-lang",
    version="0.1.0",
    description="Pon — a tiny expression language front end lowering to LLVM IR",
    packages=find_packages(include=["pon", "pon.*"]),
    python_requires=">=3.10",
    install_requires=[
        "llvmlite>=0.41.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "pon=pon.cli:main",
        ],
    },
)
