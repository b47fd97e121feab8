from setuptools import setup, find_packages

setup(
    name="habitat-suitability-curves",
    version="0.1.0",
    description="Fit habitat suitability curves to literature preference ranges",
    author="Habitat Modelling Team",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24",
        "pandas>=2.0",
        "scipy>=1.10",
        "pydantic>=2.0",
        "PyYAML>=6.0",
        "python-dotenv>=1.0",
        "matplotlib>=3.7",
        "openpyxl>=3.1",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
)
