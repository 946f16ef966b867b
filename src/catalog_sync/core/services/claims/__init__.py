"""Claim decoding package."""

from .claim_extractor import ClaimExtractor, ClaimPath
