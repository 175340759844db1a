from setuptools import find_packages, setup

setup(
    name='sysdecl',
    version='0.4.0',
    description='Declare systemd timers and tmpfiles.d entries and apply them',
    url='https://github.com/tools4digits/systemdunits',
    author='Jonas Liechti',
    license='GPL-v3',
    author_email='j.i.liechti@protonmail.ch',
    keywords='systemd units timer service tmpfiles',
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.9',
    install_requires=[
        'PyYAML>=6.0',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'sysdecl=sysdecl.cli:main',
        ],
    },
    classifiers=[
          'Intended Audience :: Developers',
          'Intended Audience :: System Administrators',
          'Programming Language :: Python :: 3.9',
          'Programming Language :: Python :: 3.10',
          'Programming Language :: Python :: 3.11',
          'Programming Language :: Python :: 3.12',
          'Topic :: Software Development :: Libraries :: Python Modules',
          'Topic :: System :: Systems Administration',
    ],
)
