"""
Compiler Backends Package.

Contains concrete implementations of the ``CompilerBackend`` interface
for specific skeleton/backend pairs (e.g., MapPairs on OpenCL).
"""

from skelgen.compiler.backends.opencl import MapPairsOpenCLBackend

__all__ = ["MapPairsOpenCLBackend"]
