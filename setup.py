import setuptools

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="ctdiag",
    version="0.0.1",
    author="EPFL",
    description="Diagnosis key exchange and storage for exposure notification",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=["SQLAlchemy>=2.0"],
    extras_require={
        "dev": ["black", "flake8", "pre-commit"],
        "postgres": ["psycopg[binary]"],
        "test": ["pytest"],
    },
    entry_points={"console_scripts": ["ctdiag=ctdiag.cli:main"]},
)
