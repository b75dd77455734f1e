"""
Asset contracts for the in-memory host environment.

- ERC20: Fungible token standard
- ERC721: Non-fungible token (NFT) standard
- ERC1155: Multi-token standard
"""

from .base import Contract
from .erc20 import ERC20Token
from .erc721 import ERC721Token
from .erc1155 import ERC1155Token

__all__ = [
    "Contract",
    "ERC20Token",
    "ERC721Token",
    "ERC1155Token",
]
