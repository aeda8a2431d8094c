from limits import RateLimitItem, parse
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter


class CreatePassRateLimiter:
    """
    Ограничение частоты создания пропусков по ключу (сотрудник или житель).
    Фиксированное окно, счетчики в памяти процесса.
    """

    def __init__(self, limit: str) -> None:
        self.item: RateLimitItem = parse(limit)
        self._storage = MemoryStorage()
        self._strategy = FixedWindowRateLimiter(self._storage)

    def hit(self, key: str) -> bool:
        """Учесть запрос. False - лимит в текущем окне исчерпан"""
        return self._strategy.hit(self.item, key)

    def remaining(self, key: str) -> int:
        return self._strategy.get_window_stats(self.item, key).remaining

    def reset(self) -> None:
        self._storage.reset()
