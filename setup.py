import setuptools
import os
from glob import glob

version = "1.0.0"
package_name = "ros2_gremsy"

with open(os.path.join(os.path.dirname(__file__), "README.md")) as f:
    LongDescription = f.read()

setuptools.setup(
    name=package_name,
    zip_safe=True,
    version=version,
    description="ROS 2 driver for Gremsy gimbals over MAVLink.",
    long_description_content_type="text/markdown",
    long_description=LongDescription,
    author="ros2_gremsy contributors",
    install_requires=[
        "setuptools",
        "pymavlink>=2.4.0",
        "pyserial>=3.4",
        "monotonic>=1.3",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    data_files=[
        ("share/ament_index/resource_index/packages", ["resource/" + package_name]),
        ("share/" + package_name, ["package.xml"]),
        (os.path.join("share", package_name, "launch"), glob("launch/*.launch.py")),
        (os.path.join("share", package_name, "config"), glob("config/*.yaml")),
    ],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering",
    ],
    license="Apache-2.0",
    packages=setuptools.find_packages(exclude=["test", "test.*"]),
    entry_points={
        "console_scripts": [
            "gremsy_node = ros2_gremsy.node:main",
        ],
    },
)
