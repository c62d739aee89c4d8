from setuptools import setup, find_packages

setup(
    name='certpathbuilder',
    version='1.0.0',
    description='Build X.509 certification paths from a target certificate to a trust anchor',
    author='Giorgos Nicolaides',
    author_email='you@example.com',
    url='https://github.com/yourusername/certpathbuilder',

    # Automatically find your package and subpackages
    packages=find_packages(include=['certpathbuilder', 'certpathbuilder.*']),

    # Runtime dependencies
    install_requires=[
        'cryptography>=42.0',
        'requests>=2.25',
        'toml>=0.10.0',
        'colorama>=0.4.6',
        'PyYAML>=5.4',
    ],
    # Optional dependencies for development
    extras_require={
        'dev': [
            'pytest>=6.0',
            'flake8',
        ],
    },

    # Define console entry point for the CLI
    entry_points={
        'console_scripts': [
            'certpathbuilder=certpathbuilder.cli:main',
        ],
    },

    include_package_data=True,
    zip_safe=False,
    python_requires='>=3.8',
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
)
