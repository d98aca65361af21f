from setuptools import setup

setup(
    name="starterkit",
    version="0.1.0",
    packages=["starterkit", "starterkit.commands"],
    install_requires=[
        "rich>=13.0.0",
        "click>=8.0",
        "PyYAML>=6.0",
        "toml>=0.10",
        "pathspec>=0.10",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pyfakefs>=5.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "starterkit=starterkit.cli:main",
        ]
    },
  )
