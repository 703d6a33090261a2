"""CryptoVault: trading journal core with shared entries, cached prices and portfolio metrics."""
