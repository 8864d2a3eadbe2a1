"""Fake Disburser — in-memory stand-in for the external transfer relay.

Invariants:
    - Records every call (address, amount, idempotency_key) in order
    - fail_times: the first N calls raise DisbursementError, later calls succeed
    - delay: seconds to sleep before answering (forces interleaving / timeouts)
"""

import asyncio

from faucet.core.errors import DisbursementError
from faucet.core.repository_protocols import DisbursementReceipt


class FakeDisburser:
    def __init__(self, delay: float = 0.0, fail_times: int = 0):
        self.delay = delay
        self.fail_times = fail_times
        self.calls: list[tuple] = []

    async def disburse(self, address, amount, idempotency_key):
        self.calls.append((address, amount, idempotency_key))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_times > 0:
            self.fail_times -= 1
            raise DisbursementError("relay unavailable", "connection_error")
        return DisbursementReceipt(tx_hash=f"0x{len(self.calls):064x}")

    @property
    def successful_calls(self) -> int:
        return len(self.calls)
