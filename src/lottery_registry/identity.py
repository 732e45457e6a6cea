from __future__ import annotations

import argparse
from typing import List

import base58

from .project_constants import ADDRESS_BYTES


def is_address(value: str) -> bool:
    try:
        raw = base58.b58decode(value)
    except ValueError:
        return False
    return len(raw) == ADDRESS_BYTES


def parse_address(value: str) -> str:
    """argparse type: a base58 public key, returned stripped."""
    value = value.strip()
    if not value or not is_address(value):
        raise argparse.ArgumentTypeError(
            f"{value!r} is not a base58 address of {ADDRESS_BYTES} bytes"
        )
    return value


def address_from_bytes(raw: bytes) -> str:
    if len(raw) != ADDRESS_BYTES:
        raise ValueError(f"address must be {ADDRESS_BYTES} bytes, got {len(raw)}")
    return base58.b58encode(raw).decode("ascii")


def load_addresses(path: str) -> List[str]:
    """One address per line; blank lines and # comments are skipped."""
    out: List[str] = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            w = line.strip()
            if not w or w.startswith("#"):
                continue
            if not is_address(w):
                raise RuntimeError(f"{path}: invalid address {w!r}")
            out.append(w)
    return out
