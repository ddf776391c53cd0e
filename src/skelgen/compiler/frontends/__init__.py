"""
Front-End Ingestion Package.

Converts the output of the source front-end into skeleton metadata.
"""

from skelgen.compiler.frontends.manifest import load_manifest, parse_manifest

__all__ = ["load_manifest", "parse_manifest"]
