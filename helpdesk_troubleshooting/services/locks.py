import asyncio
import weakref


class KeyedLockRegistry:
    """
    Hands out one asyncio.Lock per key (a user id), so two messages from
    the same user are processed one after the other while different users
    proceed concurrently. Locks disappear once nobody holds or awaits them.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def lock(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)
