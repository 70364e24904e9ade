"""
Run PyInstaller against this script file to build a standalone executable.
Make sure that srecord is installed into the Python environment before.
"""
from srecord.__main__ import main as _main

_main('__main__')
