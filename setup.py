from setuptools import find_packages, setup

with open("README.rst") as f:
    long_description = f.read()

setup(
    name="imodclip",
    version="0.1.0",
    description="Clip directories of iMOD files to an extent",
    long_description=long_description,
    license="MIT",
    packages=find_packages(include=["imodclip", "imodclip.*"]),
    package_dir={"imodclip": "imodclip"},
    test_suite="imodclip/tests",
    python_requires=">=3.10",
    install_requires=[
        "dask",
        "geopandas",
        "loguru",
        "numpy",
        "pandas",
        "pydantic>=2",
        "shapely>=2",
        "xarray",
    ],
    extras_require={
        "dev": [
            "black",
            "pytest",
            "pytest-cov",
        ],
    },
    entry_points={"console_scripts": ["imodclip = imodclip.cli:main"]},
    classifiers=[
        # https://pypi.python.org/pypi?%3Aaction=list_classifiers
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Hydrology",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: Implementation :: CPython",
    ],
    keywords="imod idf ipf gen clip groundwater modeling",
)
