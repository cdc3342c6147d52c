import random
from typing import Any, List, Optional, Union

Seed = Union[int, str]


class RNG(random.Random):
    """Seeded RNG to keep deterministic behavior."""

    def export_state(self) -> List[Any]:
        """JSON-friendly copy of the generator state."""
        version, internal, gauss = self.getstate()
        return [version, list(internal), gauss]

    def import_state(self, state: List[Any]) -> None:
        version, internal, gauss = state
        self.setstate((int(version), tuple(int(v) for v in internal), gauss))


def new_rng(seed: Optional[Seed] = None, *stream: Seed) -> RNG:
    """Build an RNG; extra `stream` parts derive an independent sequence.

    new_rng(seed, depth, "layout") is stable across runs and processes
    because string seeds are hashed with SHA-512 rather than hash().
    """
    rng = RNG()
    if stream:
        rng.seed("/".join(str(part) for part in (seed, *stream)))
    else:
        rng.seed(seed)
    return rng
