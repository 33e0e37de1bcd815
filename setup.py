import setuptools
import seqtab

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="seqtab",
    version=seqtab.__version__,
    description="Convert sequence files to JSON lines, CSV, and Parquet",
    long_description=long_description,
    long_description_content_type="text/markdown",
    install_requires=[
        "biopython>=1.85",
        "pyarrow>=14.0",
        "pysam>=0.21"
        ],
    python_requires='>=3.9',
    packages=setuptools.find_packages(exclude=["test_*"]),
    entry_points={'console_scripts': [
        'seqtab=seqtab.__main__:main',
    ]},
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: POSIX :: Linux",
    ],
)
