from __future__ import annotations

import itertools
from typing import Any, Dict, List, Optional

import httpx


class RpcClient:
    """JSON-RPC client for the chain reads the registry's clock and entropy sources need."""

    def __init__(
        self,
        rpc_url: str,
        timeout_s: float = 60.0,
        commitment: str = "finalized",
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.commitment = commitment
        self.client = httpx.Client(timeout=timeout_s, transport=transport)
        self._ids = itertools.count(1)

    def close(self) -> None:
        self.client.close()

    def get_slot(self) -> int:
        """Current slot at the client's commitment level."""
        return int(self._call("getSlot", [{"commitment": self.commitment}]))

    def get_block_time(self, slot: int) -> int:
        """Unix timestamp of ``slot``, as produced by the cluster."""
        result = self._call("getBlockTime", [slot])
        if result is None:
            raise RuntimeError(f"Timestamp not available for slot {slot}")
        return int(result)

    def get_latest_blockhash(self) -> str:
        result = self._call("getLatestBlockhash", [{"commitment": self.commitment}])
        value = (result or {}).get("value") or {}
        blockhash = value.get("blockhash")
        if not isinstance(blockhash, str) or not blockhash:
            raise RuntimeError("getLatestBlockhash returned no blockhash.")
        return blockhash

    def _call(self, method: str, params: List[Any]) -> Any:
        request_id = next(self._ids)
        payload: Dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
            "params": params,
        }
        resp = self.client.post(self.rpc_url, json=payload)
        resp.raise_for_status()
        data = resp.json()
        if "error" in data:
            raise RuntimeError(f"RPC error on {method}: {data['error']}")
        if data.get("id") != request_id:
            raise RuntimeError(
                f"RPC response id {data.get('id')!r} does not match request {request_id}"
            )
        return data.get("result")
