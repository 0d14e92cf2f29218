from setuptools import find_packages, setup

setup(
    name='story-launcher',
    version='0.1.0',
    description='Install, update and launch the Story desktop tools',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    python_requires='>=3.10',
    install_requires=[
        'requests',
        'PyYAML',
        'platformdirs',
        'rich',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-mock',
        ],
    },
    entry_points={
        'console_scripts': [
            'story-launcher=story_launcher.cli:run',
        ],
    },
)
