"""
Hashgen CLI Package

Command line front end for the hashing core.
"""

from .main import HashgenCLI, main

__all__ = ['HashgenCLI', 'main']
