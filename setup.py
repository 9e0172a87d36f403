"""
Setup file.
"""

import os

from setuptools import find_packages, setup

URL = "https://github.com/arduino-swift/arduswift"
KEYWORDS = "embedded swift arduino arduino-cli compiler toolchain firmware microcontroller"
HERE = os.path.dirname(os.path.abspath(__file__))

INSTALL_REQUIRES = [
    "pyserial>=3.5",
]

EXTRAS_REQUIRE = {
    "test": [
        "pytest>=7.0",
    ],
}


if __name__ == "__main__":
    setup(
        name="arduswift",
        version="0.1.0",
        description="Build Embedded Swift sketches for Arduino boards with arduino-cli",
        keywords=KEYWORDS,
        url=URL,
        python_requires=">=3.9",
        package_dir={"": "src"},
        packages=find_packages(where="src"),
        install_requires=INSTALL_REQUIRES,
        extras_require=EXTRAS_REQUIRE,
        entry_points={
            "console_scripts": [
                "arduino-swift=arduswift.cli:main",
            ],
        },
        package_data={"arduswift": ["assets/boards.json"]},
        include_package_data=True)
