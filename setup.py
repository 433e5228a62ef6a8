from setuptools import setup
from codecs import open
from os import path

# Load the README file for use in the long description
local_dir = path.abspath(path.dirname(__file__))
with open(path.join(local_dir, "README.rst"), encoding="utf-8") as f:
  long_description = f.read()

# Read the version without importing the package (and its dependencies).
about = {}
with open(path.join(local_dir, "firemodel", "__init__.py"), encoding="utf-8") as f:
  for line in f:
    if line.startswith(("__version__", "__author__", "__license__")):
      exec(line, about) # pylint: disable=exec-used

requires = [
  "iso8601",
]

tests_requires = [
  "nose2",
  "nose2[coverage_plugin]",
]

extras_require = {
  "firestore": ["google-cloud-firestore"],
  "doc": ["sphinx", "sphinx_rtd_theme"],
  "test": tests_requires,
  "lint": ["pylint", "pynt"],
}

setup(
  name="firemodel",
  version=about["__version__"],
  description="Schema-validated document models for Cloud Firestore",
  long_description=long_description,
  author=about["__author__"],
  license=about["__license__"],
  classifiers=[
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "License :: OSI Approved :: Mozilla Public License 2.0 (MPL 2.0)",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3.8",
    "Programming Language :: Python :: 3.9",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Topic :: Database",
    "Topic :: Database :: Front-Ends",
    "Operating System :: MacOS :: MacOS X",
    "Operating System :: Microsoft :: Windows",
    "Operating System :: Unix",
  ],
  keywords="firestore odm schema validation",
  packages=["firemodel", "firemodel.model"],
  python_requires=">=3.8",
  install_requires=requires,
  extras_require=extras_require,
  test_suite="nose2.collector.collector",
)
