import asyncio

from cleanpay.payments.idempotency import ProcessedEventRegistry


def test_claim_once():
    async def _run():
        registry = ProcessedEventRegistry()
        return await registry.claim("evt_1"), await registry.claim("evt_1"), await registry.claim("evt_2")

    assert asyncio.run(_run()) == (True, False, True)


def test_release_allows_redelivery():
    async def _run():
        registry = ProcessedEventRegistry()
        await registry.claim("evt_1")
        await registry.release("evt_1")
        return "evt_1" in registry, await registry.claim("evt_1")

    assert asyncio.run(_run()) == (False, True)


def test_bounded_oldest_evicted():
    async def _run():
        registry = ProcessedEventRegistry(max_size=2)
        for event_id in ("a", "b", "c"):
            await registry.claim(event_id)
        return registry

    registry = asyncio.run(_run())
    assert len(registry) == 2
    assert "a" not in registry
    assert "c" in registry


def test_concurrent_claims_single_winner():
    async def _run():
        registry = ProcessedEventRegistry()
        return await asyncio.gather(*(registry.claim("evt_same") for _ in range(10)))

    assert sum(asyncio.run(_run())) == 1
