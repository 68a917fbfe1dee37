# coding: utf-8
# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2016

from os import path

from setuptools import find_packages, setup

# pylint: disable=wrong-import-position
from multiverse_harness.version import VERSION

# Import README.md into long_description
pwd = path.abspath(path.dirname(__file__))

with open(path.join(pwd, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()


setup(name='multiverse-harness',
      version=VERSION,
      license='MIT',
      description='Run a monitoring agent against a local fake collector in integration tests',
      packages=find_packages(exclude=['tests', 'tests.*']),
      long_description=long_description,
      long_description_content_type='text/markdown',
      zip_safe=False,
      python_requires='>=3.8',
      install_requires=['fysom>=2.1.2',
                        'flask>=2.0.0',
                        'requests>=2.6.0',
                        'urllib3>=1.26.5',
                        'werkzeug>=2.0.0',],
      extras_require={
          'pytest': ['pytest>=7.0.0',],
          'test': ['pytest>=7.0.0',
                   'mock>=4.0.0',],
      },
      keywords=['testing', 'monitoring', 'agent', 'collector', 'integration-tests'],
      classifiers=[
          'Development Status :: 4 - Beta',
          'Framework :: Pytest',
          'Intended Audience :: Developers',
          'License :: OSI Approved :: MIT License',
          'Operating System :: OS Independent',
          'Programming Language :: Python',
          'Programming Language :: Python :: 3',
          'Topic :: Software Development :: Testing',
          'Topic :: System :: Monitoring',
          'Topic :: Software Development :: Libraries :: Python Modules'])
