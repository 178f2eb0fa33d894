CHAIN_ID_OPTIMISM = 10

CHAIN_CODE_TO_ID = {
    "optimism": CHAIN_ID_OPTIMISM,
    "op": CHAIN_ID_OPTIMISM,
}

CHAIN_ID_TO_CODE: dict[int, str] = {CHAIN_ID_OPTIMISM: "optimism"}

SUPPORTED_CHAINS = [CHAIN_ID_OPTIMISM]

PRE_EIP_1559_CHAIN_IDS: set[int] = set()

CHAIN_EXPLORER_URLS: dict[int, str] = {
    CHAIN_ID_OPTIMISM: "https://optimistic.etherscan.io/",
}

SAFE_TX_SERVICE_URLS: dict[int, str] = {
    CHAIN_ID_OPTIMISM: "https://safe-transaction-optimism.safe.global",
}
