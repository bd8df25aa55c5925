from __future__ import annotations

import logging
from typing import Sequence, Tuple, TypeVar

from choreo.errors import EmptyPairing

LOG = logging.getLogger(__name__)

S = TypeVar("S")
D = TypeVar("D")


def build_pairs(sources: Sequence[S], destinations: Sequence[D], *, strict: bool = False) -> list[Tuple[S, D]]:
    """Zip sources with destinations positionally.

    The result has ``min(len(sources), len(destinations))`` pairs; surplus
    handles on the longer side are dropped, since destination tables may be
    pre-seeded with a different number of rows. An empty result is a no-op
    unless ``strict`` is set, in which case :class:`EmptyPairing` is raised.
    """

    pairs = list(zip(sources, destinations))
    if not pairs:
        if strict:
            raise EmptyPairing(f"Nothing to pair ({len(sources)} sources, {len(destinations)} destinations)")
        LOG.debug("Empty pairing (%d sources, %d destinations).", len(sources), len(destinations))
    elif len(sources) != len(destinations):
        LOG.debug(
            "Pairing truncated to %d (%d sources, %d destinations).",
            len(pairs), len(sources), len(destinations),
        )
    return pairs
