from setuptools import setup

setup(
    name="cpr",
    version="0.1.6",
    description="A simple git-based project manager: scaffold new projects from git-hosted templates",
    packages=["cpr", "cpr.commands"],
    python_requires=">=3.8",
    install_requires=[
        "click>=8.0",
        "rich>=13.0.0",
        "jinja2>=3.0",
        "toml>=0.10",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pyfakefs>=5.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "cpr=cpr.cli:main",
        ]
    },
  )
