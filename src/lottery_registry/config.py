from __future__ import annotations

import os
from dataclasses import dataclass
from dotenv import load_dotenv

from .project_constants import DEFAULT_STATE_FILE


@dataclass(frozen=True)
class Settings:
    state_file: str
    rpc_url: str | None = None
    caller: str | None = None

    @staticmethod
    def from_env(
        rpc_url_override: str | None = None,
        state_file_override: str | None = None,
        caller_override: str | None = None,
    ) -> "Settings":
        load_dotenv()

        # CLI flags win over env.
        rpc_url = rpc_url_override or os.getenv("RPC_URL", "").strip() or None
        state_file = (
            state_file_override
            or os.getenv("LOTTERY_STATE_FILE", "").strip()
            or DEFAULT_STATE_FILE
        )
        caller = caller_override or os.getenv("LOTTERY_CALLER", "").strip() or None
        return Settings(state_file=state_file, rpc_url=rpc_url, caller=caller)

    def require_rpc_url(self) -> str:
        if not self.rpc_url:
            raise RuntimeError("Missing RPC_URL. Put it in .env, export it, or pass --rpc-url.")
        return self.rpc_url

    def require_caller(self) -> str:
        if not self.caller:
            raise RuntimeError(
                "Missing caller address. Pass --caller or set LOTTERY_CALLER in .env."
            )
        return self.caller
