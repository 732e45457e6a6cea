"""
Project-wide immutable parameters for the lottery registry.

These values define the public rules of every lottery.
Changing them changes ticket pricing and MUST be publicly announced.
"""

# Ticket prices are entered in whole units and stored in the smallest unit
PRICE_DECIMALS = 9

# 1 unit in raw units (9 decimals)
PRICE_SCALE = 10**PRICE_DECIMALS

# Caller addresses are base58-encoded public keys
ADDRESS_BYTES = 32

# Default location of the CLI state file
DEFAULT_STATE_FILE = "lottery_state.json"
