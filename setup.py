"""
circuitslide: circuit-routing sliding puzzle on JAX.
"""

import setuptools

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setuptools.setup(
    name="circuitslide",
    version="0.1.0",
    description="Circuit-routing sliding puzzle with JAX board environments",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(include=["circuitslide", "circuitslide.*"]),
    include_package_data=True,
    install_requires=[
        "jax>=0.4.0",
        "chex>=0.1.0",
        "tabulate>=0.9.0",
        "termcolor>=2.1.0",
        "opencv-python>=4.10.0",
        "tqdm>=4.67.1",
        "numpy>=2.0.0",
        "click>=8.0.0",
        "xtructure @ git+https://github.com/tinker495/xtructure.git",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
        ]
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: Games/Entertainment :: Puzzle Games",
    ],
    python_requires=">=3.10",
)
