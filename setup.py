from setuptools import setup, find_packages

setup(
    name="foolhtml",
    version="0.1.0",
    description="Bundle files and directories into a single self-contained HTML viewer page",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    license="0BSD",
    python_requires=">=3.10",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "requests>=2.31",
        "markdown>=3.8.2",
        "pygments>=2.19.2",
        "mcp>=1.0.0,<2",
    ],
    extras_require={
        "test": ["pytest>=8.0"],
    },
    entry_points={
        "console_scripts": [
            "foolhtml=foolhtml.foolhtml:main",
            "foolhtml-mcp=foolhtml.mcp_server:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Utilities",
    ],
)
