from setuptools import setup

setup(
    name="koreander",
    version="0.1.0",
    description="Haml-like indentation markup compiled to Python render functions",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=['koreander'],
    python_requires=">=3.10",
    install_requires=[
        "watchdog",
        "pyyaml",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["koreander=koreander.__main__:main"],
    },
)
