"""
Setup file.
"""

import os

from setuptools import find_packages, setup

URL = "https://github.com/capibuild/capibuild"
KEYWORDS = "bazel litert-lm shared-library ffi c-api build toolchain"
HERE = os.path.dirname(os.path.abspath(__file__))


if __name__ == "__main__":
    setup(
        name="capibuild",
        version="0.1.0",
        description="Builds the LiteRT-LM C API shared library from a source checkout",
        keywords=KEYWORDS,
        url=URL,
        python_requires=">=3.9",
        package_dir={"": "src"},
        packages=find_packages(where="src"),
        install_requires=["psutil>=5.9"],
        extras_require={"test": ["pytest>=7.0"]},
        entry_points={"console_scripts": ["capibuild=capibuild.cli:main"]},
        include_package_data=True)
