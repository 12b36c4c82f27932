#!/usr/bin/env python

from setuptools import setup

# note: this is a repeat of the README, to evolve, good enough for now.
long_desc = """
Decodes and validates 32-bit Portable Executable images such as .exe, .dll
and .efi files, rejecting anything malformed, unsupported or inconsistent.
"""

setup(
    name="pe32image",
    version="0.1.0",
    license="BSD-2-Clause-Patent",
    description="A pure-python strict decoder for PE32 images",
    long_description=long_desc,
    author="Richard Hughes",
    author_email="richard@hughsie.com",
    url="https://github.com/hughsie/python-pe32image",
    packages=[
        "pe32image",
    ],
    include_package_data=True,
    install_requires=[
        "pefile",
    ],
    extras_require={
        "test": ["pytest"],
        "docs": ["sphinx"],
    },
    entry_points={
        "console_scripts": [
            "pe32image = pe32image.cli:main",
        ]
    },
    zip_safe=False,
    classifiers=[
        # complete classifier list: http://pypi.python.org/pypi?%3Aaction=list_classifiers
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: BSD License",
        "Programming Language :: Python :: 3",
        "Topic :: Utilities",
        "Topic :: Software Development :: Disassemblers",
    ],
    keywords=["pe", "pe32", "coff", "efi", "parser"],
    package_data={
        "pe32image": [
            "py.typed",
        ]
    },
    python_requires=">=3.8",
    setup_requires=["wheel"],
)
