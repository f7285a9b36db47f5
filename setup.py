from setuptools import setup, find_packages

with open("README.rst", "r", encoding="utf-8") as fh:
    long_description = fh.read()


setup_params = dict(
    name =          'pyphoenixqs',
    version =       '1.0.0',
    description =   'Python client for Apache Phoenix Query Server, over ODBC or JSON/HTTP',
    long_description = long_description,
    long_description_content_type = "text/x-rst",
    author = "pyphoenixqs developers",
    packages = find_packages(exclude=["tests", "tests.*"]),
    classifiers = [
        "Programming Language :: Python :: 3.9",
        "License :: OSI Approved :: BSD License",
        "Operating System :: OS Independent",
    ],
    keywords = 'database phoenix hbase avatica queryserver',
    python_requires = '>=3.9',
    install_requires=["requests>=2.31", "numpy>=1.26.4", "pyarrow>=15.0.0", "pandas>=2.2.2"],
    extras_require={
        "odbc": ["pyodbc>=5.0"],
        "test": ["pytest>=7.0", "Faker>=26.0.0"],
    },
)

if __name__ == '__main__':
    setup(**setup_params)
