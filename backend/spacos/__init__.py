"""SPAC OS backend."""
