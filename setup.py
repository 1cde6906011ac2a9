from setuptools import setup, find_packages

setup(
    name='asset-mirror',
    version='0.1.0',
    description="Mirror a GitHub repository's releases and assets to local disk",
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    python_requires='>=3.10',
    install_requires=[
        'requests',
        'PyYAML',
        'urllib3',
        'rich',
        'platformdirs',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-mock',
        ],
    },
    entry_points={
        'console_scripts': [
            'asset-mirror=assetmirror.cli:main',
        ],
    },
)
