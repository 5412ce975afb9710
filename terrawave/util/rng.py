"""Deterministic random number generation with isolated streams.

Each consumer (for example the terrain recovery fill) gets its own
independent random stream derived from a master seed. This ensures that:

1. Map generation is fully deterministic from the same master seed
2. Changes to one consumer's random draws don't shift another's sequence
3. A solve can be replayed bit-for-bit from (seed, catalog, initial calls)

Usage:
    provider = RNGProvider(seed)

    # Cache the stream reference
    _rng = provider.get("terrain.recovery")

    def pick(options: list[str]) -> str:
        return _rng.choice(options)

    # After provider.reset(), cached references automatically use the new stream

A Solver does not use a provider: it owns a `Random` built from its own seed
(see `make_random`), so two solvers never share a stream.

Domain naming convention (hierarchical):
    - "terrain.recovery"
"""

from __future__ import annotations

import zlib
from collections.abc import Sequence
from random import Random
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from terrawave.types import RandomSeed

T = TypeVar("T")


def derive_seed(master_seed: RandomSeed, domain: str) -> int:
    """Derive a stable 32-bit seed for `domain` from a master seed.

    Uses crc32 instead of hash() - hash() is randomized per Python session via
    PYTHONHASHSEED, which would break cross-session determinism.
    """
    return zlib.crc32(f"{master_seed}:{domain}".encode())


def make_random(seed: RandomSeed) -> Random:
    """Create a private Random for a single owner (e.g. one Solver).

    Integer seeds are used as-is so that `Solver(seed=42)` and
    `random.Random(42)` draw the same sequence. Other seeds go through
    `derive_seed`; None gives a non-deterministic stream.
    """
    if seed is None:
        return Random()
    if isinstance(seed, int):
        return Random(seed)
    return Random(derive_seed(seed, "seed"))


class RNGStream:
    """Proxy that delegates to the current RNG for a domain.

    This wrapper allows callers to cache a reference that survives provider.reset().
    All method calls are forwarded to the underlying Random instance,
    which is looked up fresh each time from the provider.
    """

    def __init__(self, provider: RNGProvider, domain: str) -> None:
        self._provider = provider
        self._domain = domain

    def _rng(self) -> Random:
        """Get the current underlying RNG."""
        return self._provider._get_raw(self._domain)

    # -------------------------------------------------------------------------
    # Random method proxies
    # -------------------------------------------------------------------------

    def random(self) -> float:
        """Return random float in [0.0, 1.0)."""
        return self._rng().random()

    def choice(self, seq: Sequence[T]) -> T:
        """Return random element from non-empty sequence."""
        return self._rng().choice(seq)


# Type alias for functions that accept either Random or RNGStream.
# Use this in type hints: `def foo(rng: RNG) -> int:`
type RNG = Random | RNGStream


class RNGProvider:
    """Provides isolated RNG streams for different consumers.

    Each domain gets its own Random instance derived deterministically
    from the master seed. Domains are identified by string names.
    """

    def __init__(self, master_seed: RandomSeed = None) -> None:
        self._master_seed = master_seed
        self._streams: dict[str, Random] = {}
        self._proxies: dict[str, RNGStream] = {}

    @property
    def master_seed(self) -> RandomSeed:
        return self._master_seed

    def get(self, domain: str) -> RNGStream:
        """Get an RNG stream for the named domain.

        Returns a proxy object that can be cached. The proxy automatically
        uses the current underlying RNG, even after reset().

        Args:
            domain: Hierarchical name like "terrain.recovery"

        Returns:
            An RNGStream proxy with the same interface as Random
        """
        if domain not in self._proxies:
            self._proxies[domain] = RNGStream(self, domain)
        return self._proxies[domain]

    def _get_raw(self, domain: str) -> Random:
        """Get the raw Random instance for a domain (internal use)."""
        if domain not in self._streams:
            if self._master_seed is None:
                # No seed: use system entropy for non-deterministic behavior
                self._streams[domain] = Random()
            else:
                self._streams[domain] = Random(
                    derive_seed(self._master_seed, domain)
                )
        return self._streams[domain]

    def reset(self, master_seed: RandomSeed = None) -> None:
        """Reset all streams with a new master seed.

        Existing RNGStream proxies remain valid and will use the new streams.

        Args:
            master_seed: New master seed for all streams
        """
        self._master_seed = master_seed
        self._streams.clear()
        # Note: _proxies are kept - they'll get fresh RNGs on next access

