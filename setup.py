"""
Setup script for admitstats package.
"""

from setuptools import setup, find_packages

setup(
    name="admitstats",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        # Core numerical dependencies
        "numpy>=1.20.0",
        "pandas>=1.3.0",
        "scipy>=1.7.0",
        "scikit-learn>=1.0.0",

        # Spreadsheet input
        "openpyxl>=3.0.0",

        # Report
        "matplotlib>=3.5.0",
        "seaborn>=0.11.0",
        "pydantic>=2.0.0",

        # Utilities
        "pyyaml>=6.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=6.0.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'admitstats=admitstats.__main__:main',
        ],
    },
    description="Correlation and principal component analysis of admissions data",
    keywords="eda, pca, correlation, admissions",
    python_requires=">=3.8",
)
