from setuptools import setup, find_packages

setup(
    name="comicshrink",
    version="1.0.0",
    description="Compress comic book files (CBZ/CBR/PDF) into WebP-based CBZ archives",
    author="Jacob",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pillow",
        "rarfile",
        "numpy",
        "pypdf>=3.1",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "comicshrink=comicshrink.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Graphics :: Graphics Conversion",
    ],
    python_requires=">=3.9",
)
