# Sphinx configuration for the pe32image API reference, see
# https://www.sphinx-doc.org/en/master/usage/configuration.html

import os
import sys
import subprocess

sys.path.insert(0, os.path.abspath("../.."))


project = "pe32image"
copyright = "2021, Richard Hughes"
author = "Richard Hughes"

# the tag if building from git, otherwise whatever is installed
try:
    release = (
        subprocess.check_output(["git", "describe"], stderr=subprocess.DEVNULL)
        .decode("utf-8")
        .strip()
    )
except (subprocess.CalledProcessError, PermissionError, FileNotFoundError):
    from importlib.metadata import version, PackageNotFoundError

    try:
        release = version("pe32image")
    except PackageNotFoundError:
        release = ""
master_doc = "index"
html_copy_source = False
html_show_sphinx = False
extensions = ["sphinx.ext.autodoc"]
autodoc_member_order = "bysource"
autodoc_default_options = {"members": True, "show-inheritance": True}
exclude_patterns = []
html_theme = "alabaster"
