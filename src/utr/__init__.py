"""
UTR - Universal Token Router

Executes ordered lists of input and output actions atomically: input
actions pull assets from the caller, output actions invoke application
logic, and every output's minimum balance increase is verified once all
actions have run.
"""

__version__ = "0.1.0"
__author__ = "UTR Development Team"

__all__ = []
