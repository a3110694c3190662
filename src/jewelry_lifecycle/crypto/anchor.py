"""Blockchain anchoring — publish the registry's audit root on Ethereum.

Anchoring embeds the Merkle root of the event log in the data field of
a 0-value self-send transaction. Anyone holding the log can recompute
the root and compare it with the transaction, proving the provenance
trail existed in that exact form no later than the anchoring block.

No contract code runs on-chain; the chain is used as a timestamped
witness only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

HARDHAT_CHAIN_ID = 31337

_EXPLORERS: dict[int, str] = {
    1: "https://etherscan.io/tx/",
    11155111: "https://sepolia.etherscan.io/tx/",
}


@dataclass(frozen=True)
class AnchorRecord:
    """A record of a confirmed anchoring transaction."""
    digest: str
    tx_hash: str
    block_number: int
    chain_id: int
    sender: str
    timestamp_utc: str
    explorer_url: str


def digest_bytes(digest: str) -> bytes:
    """Raw bytes of a ``sha256:``-prefixed or bare hex digest."""
    clean = digest.removeprefix("sha256:")
    data = bytes.fromhex(clean)
    if len(data) != 32:
        raise ValueError(f"Digest must be 32 bytes, got {len(data)}")
    return data


def anchor_to_chain(
    digest: str,
    rpc_url: str,
    private_key: str,
    chain_id: int = HARDHAT_CHAIN_ID,
    gas: int = 30_000,
    gas_price_gwei: str = "2",
    timeout: int = 300,
) -> AnchorRecord:
    """Embed ``digest`` in a self-send transaction and wait for one receipt.

    Args:
        digest: SHA-256 digest, with or without the ``sha256:`` prefix.
        rpc_url: Ethereum JSON-RPC endpoint.
        private_key: Hex-encoded signing key.
        chain_id: Network chain id (default: Hardhat localhost).
        gas: Gas limit for the transaction.
        gas_price_gwei: Gas price in gwei.
        timeout: Seconds to wait for the receipt.

    Returns:
        AnchorRecord with transaction details.
    """
    from web3 import Web3, HTTPProvider
    from eth_account import Account

    payload = digest_bytes(digest)
    w3 = Web3(HTTPProvider(rpc_url))
    acct = Account.from_key(private_key)

    tx = {
        "to": acct.address,
        "value": 0,
        "gas": gas,
        "gasPrice": w3.to_wei(gas_price_gwei, "gwei"),
        "nonce": w3.eth.get_transaction_count(acct.address),
        "chainId": chain_id,
        "data": payload,
    }
    signed = acct.sign_transaction(tx)
    tx_hash = w3.eth.send_raw_transaction(signed.raw_transaction)
    logger.info("Anchor tx sent: %s", tx_hash.hex())

    receipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
    logger.info("Anchor confirmed in block %s", receipt.blockNumber)

    explorer = _EXPLORERS.get(chain_id)
    return AnchorRecord(
        digest=digest,
        tx_hash=tx_hash.hex(),
        block_number=receipt.blockNumber,
        chain_id=chain_id,
        sender=acct.address,
        timestamp_utc=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        explorer_url=f"{explorer}{tx_hash.hex()}" if explorer else "",
    )
