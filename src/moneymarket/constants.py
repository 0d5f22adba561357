__all__ = (
    "MANTISSA_DECIMALS",
    "POSITION_TOKEN_DECIMALS",
    "PROTOCOL_CONFIG_ID",
    "ZERO_ADDRESS",
)

from eth_typing import ChecksumAddress

from moneymarket.checksum_cache import get_checksum_address

ZERO_ADDRESS: ChecksumAddress = get_checksum_address("0x0000000000000000000000000000000000000000")

# Rates, indices and protocol factors are fixed-point values with 18 decimal places
MANTISSA_DECIMALS = 18

# All position (market) tokens use 8 decimal places
POSITION_TOKEN_DECIMALS = 8

# The protocol configuration is a single row with a fixed key
PROTOCOL_CONFIG_ID = "1"
