from eth_utils import to_checksum_address

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Slipstream CL gauge (reward contract) and its position manager NFT (Optimism)
GAUGE_ADDRESS = to_checksum_address("0x3914e354979e6bc63782512Bddb24C224E81a1bD")
POSITION_MANAGER_ADDRESS = to_checksum_address(
    "0xbB5DFE1380333CEE4c2EeBd7202c80dE2256AdF4"
)

DEFAULT_DEPOSITOR_ADDRESS = to_checksum_address(
    "0xb81D12E9D9f9cB044046b6d5830DA536e3205049"
)

# Safe v1.3.0 canonical deployment
SAFE_MULTI_SEND_CALL_ONLY_ADDRESS = to_checksum_address(
    "0x40A2aCCbd92BCA938b02010E17A5b8929b49130D"
)
