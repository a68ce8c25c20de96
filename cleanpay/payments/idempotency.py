"""
Registre des événements déjà traités (dé-duplication des relivraisons Stripe).
En mémoire, borné, propre au processus: aucune base de données n'existe.
Plusieurs workers peuvent donc encore notifier deux fois le même paiement.
"""
import asyncio
from collections import OrderedDict


class ProcessedEventRegistry:
    def __init__(self, max_size: int = 1024):
        self._max_size = max(int(max_size), 1)
        self._seen: "OrderedDict[str, None]" = OrderedDict()
        self._lock = asyncio.Lock()

    async def claim(self, event_id: str) -> bool:
        """Réserve l'id; False si l'événement a déjà été réservé (relivraison)."""
        async with self._lock:
            if event_id in self._seen:
                return False
            self._seen[event_id] = None
            while len(self._seen) > self._max_size:
                self._seen.popitem(last=False)
            return True

    async def release(self, event_id: str) -> None:
        """Libère l'id pour qu'une relivraison soit de nouveau traitée."""
        async with self._lock:
            self._seen.pop(event_id, None)

    def __contains__(self, event_id: str) -> bool:
        return event_id in self._seen

    def __len__(self) -> int:
        return len(self._seen)
