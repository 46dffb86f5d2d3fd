"""
filestream: chunked upload reassembly for local storage
"""

__version__ = "1.0.0"
