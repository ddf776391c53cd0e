"""
Core Package.

Contains the generation engine that drives code generators over a program's
skeleton instantiations.
"""
