"""Error taxonomy for wallet authentication."""
