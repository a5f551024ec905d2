from setuptools import setup, find_packages
setup(
    name="lang_table",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[],
    extras_require={"test": ["pytest"]},
    python_requires=">=3.9",
)
