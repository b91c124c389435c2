"""
Setup file.
"""

import os

from setuptools import find_packages, setup

URL = "https://github.com/yodasoda1219/sdl-pinvoke-redist"
KEYWORDS = "sdl sdl2 cmake nuget pinvoke native redistributable packaging"
HERE = os.path.dirname(os.path.abspath(__file__))


if __name__ == "__main__":
    setup(
        name="sdlpack",
        version="0.1.0",
        description="Build SDL2 with CMake and publish it as a NuGet redistributable",
        maintainer="Nora Beda",
        keywords=KEYWORDS,
        url=URL,
        license="Apache-2.0",
        python_requires=">=3.10",
        package_dir={"": "src"},
        packages=find_packages(where="src"),
        package_data={"sdlpack.resources": ["*.json", "*.md"]},
        include_package_data=True,
        install_requires=[
            "tqdm",
            "psutil",
        ],
        extras_require={
            "test": [
                "pytest",
            ],
        },
        entry_points={
            "console_scripts": [
                "sdlpack=sdlpack.cli:main",
            ],
        },
    )
