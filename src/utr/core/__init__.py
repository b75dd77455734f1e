"""
UTR Core Module

Core functionality of the Universal Token Router:
- Action-execution engine (router)
- In-memory host environment and asset contracts
- ABI codec, configuration, logging and metrics
"""

__all__ = []
