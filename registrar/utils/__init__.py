"""
registrar.utils
---------------

Light helpers shared across the registrar components: byte/address
normalization, Keccak-256 hashing, node/label hashing for the naming
system, and the small ABI encoder used to bind commit hashes.

This package file deliberately avoids eager imports to keep dependency
order simple.
"""

__all__: list[str] = []
