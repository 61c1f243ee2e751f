import os
import re

from setuptools import setup, find_packages

_here = os.path.abspath(os.path.dirname(__file__))

with open(os.path.join(_here, 'README.rst'), encoding='utf-8') as f:
    long_description = f.read()

with open(os.path.join(_here, 'greetings', 'version.py'), encoding='utf-8') as f:
    __version__ = re.search(r"__version__ = '([^']+)'", f.read()).group(1)

setup(
    name='greetings-service',
    version=__version__,
    description='Hello world greetings microservice using Flask with health and management endpoints.',
    long_description=long_description,
    long_description_content_type='text/x-rst',
    author='Greetings service maintainers',
    license='MIT',
    packages=find_packages(exclude=['tests', 'tests.*']),
    include_package_data=True,
    python_requires='>=3.10',
    install_requires=[
        'anyconfig>=0.12',
        'click>=8.0',
        'flask>=2.3',
        'markdown>=3.3',
        'python-dotenv>=1.0',
        'pyyaml>=6.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
            'requests>=2.28',
        ],
    },
    keywords='python3 microservice flask hello-world greeting',
    entry_points={
        'console_scripts': [
            'greetings=greetings.cli:main',
        ],
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        "License :: OSI Approved :: MIT License",
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Topic :: Internet :: WWW/HTTP :: WSGI :: Application',
    ],
)
