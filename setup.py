#!/usr/bin/python
#
# Copyright (C) 2026 Advanced Media Workflow Association
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from setuptools import setup
import os


def is_package(path):
    return (
        os.path.isdir(path) and
        os.path.isfile(os.path.join(path, '__init__.py'))
        )


def find_packages(path, base=""):
    """ Find all packages in path """
    packages = {}
    for item in os.listdir(path):
        dir = os.path.join(path, item)
        if is_package(dir):
            if base:
                module_name = "%(base)s.%(item)s" % vars()
            else:
                module_name = item
            packages[module_name] = dir
            packages.update(find_packages(dir, module_name))
    return packages


packages = find_packages(".")
package_names = list(packages.keys())

with open("requirements.txt") as requirements_file:
    packages_required = requirements_file.read().splitlines()

setup(name="grain-flow-testing",
      version="0.2.0",
      description="Node-RED Grain Flow Test Suite",
      license='Apache 2',
      packages=package_names,
      package_dir=packages,
      install_requires=packages_required,
      extras_require={
          "test": ["pytest"]
      },
      entry_points={
          "console_scripts": [
              "grain-flow-test=grainflowtesting.FlowTesting:main"
          ]
      },
      scripts=[],
      data_files=[],
      long_description="""
Automated testing suite for Node-RED flows which process NMOS media grains
""")
