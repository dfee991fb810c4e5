"""Constants and fakes shared across test modules."""

USDC = "0x833589fcd6edb6e08f4c7c32d4f71b54bda02913"
WALLET_A = "0x1111111111111111111111111111111111111111"
WALLET_B = "0x2222222222222222222222222222222222222222"
BENEFICIARY = "0x9999999999999999999999999999999999999999"
TX_HASH = "0x" + "ab" * 32


class FakeChannel:
    """In-memory notification channel."""

    def __init__(self, *, available: bool = True, fail: bool = False) -> None:
        self.available = available
        self.fail = fail
        self.messages: list[str] = []

    def is_available(self) -> bool:
        return self.available

    async def send(self, text: str) -> None:
        if self.fail:
            raise ConnectionError("telegram unreachable")
        self.messages.append(text)
