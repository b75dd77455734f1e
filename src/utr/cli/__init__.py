"""UTR command-line tools."""
