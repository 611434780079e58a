"""Wire encodings: subscriber leaves and the relayed commitment payload.

Leaves use packed ABI encoding (address || int96) hashed with keccak-256.
The commitment crosses domains as a standard ABI-encoded bytes32, so the
payload is always exactly 32 bytes. Anything else is rejected.
"""

from __future__ import annotations

from typing import Any

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_abi.packed import encode_packed
from web3 import Web3

from streamroot.errors import MalformedPayload
from streamroot.models.subscriber import SubscriberRecord

COMMITMENT_PAYLOAD_SIZE = 32


def encode_leaf(record: SubscriberRecord) -> bytes:
    """Packed leaf preimage: 20 address bytes followed by 12 rate bytes."""
    return encode_packed(["address", "int96"], [record.identity, record.flow_rate])


def leaf_hash(record: SubscriberRecord) -> bytes:
    """keccak-256 of the packed leaf preimage."""
    return bytes(Web3.keccak(encode_leaf(record)))


def encode_commitment(commitment: bytes) -> bytes:
    """ABI-encode a commitment as a single bytes32."""
    if len(commitment) != COMMITMENT_PAYLOAD_SIZE:
        raise ValueError(f"Commitment must be 32 bytes, got {len(commitment)}")
    return encode(["bytes32"], [commitment])


def decode_commitment(payload: Any) -> bytes:
    """Decode a payload that must hold exactly one bytes32.

    Fails closed with MalformedPayload on any other type or length.
    """
    if not isinstance(payload, (bytes, bytearray)):
        raise MalformedPayload(f"Payload must be bytes, got {type(payload).__name__}")
    if len(payload) != COMMITMENT_PAYLOAD_SIZE:
        raise MalformedPayload(
            f"Payload must be exactly {COMMITMENT_PAYLOAD_SIZE} bytes, got {len(payload)}"
        )
    try:
        (commitment,) = decode(["bytes32"], bytes(payload))
    except DecodingError as exc:
        raise MalformedPayload(f"Cannot decode commitment: {exc}") from exc
    return bytes(commitment)
