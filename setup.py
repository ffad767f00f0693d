# -*- coding=utf-8

from setuptools import setup, find_packages

setup(name='pngmosaic',
      version='1.0',
      description='Module to build a PNG photomosaic from a directory of square tiles',
      packages=find_packages(include=['pngmosaic', 'pngmosaic.*']),
      python_requires='>=3.8',
      install_requires=['numpy>=1.18.5',
                        'Pillow>=7.1',
                        'numba>=0.50.1',
                        'scipy>=1.6'],
      extras_require={'test': ['pytest']}
      )
