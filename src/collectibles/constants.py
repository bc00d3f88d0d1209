"""Centralized constants for the collectibles package.

Interface IDs and fixed collection parameters live here to avoid string
literals scattered across modules.
"""

# Gateway prefix joined with each asset's stored URI suffix
BASE_TOKEN_URI = "https://gateway.pinata.cloud/ipfs"

# Maximum assets one address may receive through tiered minting
MAX_MINTS_PER_HOLDER = 5

# Capability-discovery identifiers (ERC-165 style, 4-byte selectors)
INTERFACE_ERC165 = 0x01FFC9A7
INTERFACE_ERC721 = 0x80AC58CD
INTERFACE_ERC721_METADATA = 0x5B5E139F
INTERFACE_ERC721_ENUMERABLE = 0x780E9D63
INTERFACE_INVALID = 0xFFFFFFFF

SUPPORTED_INTERFACES = frozenset({
    INTERFACE_ERC165,
    INTERFACE_ERC721,
    INTERFACE_ERC721_METADATA,
    INTERFACE_ERC721_ENUMERABLE,
})
