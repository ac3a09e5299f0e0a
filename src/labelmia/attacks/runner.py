"""Run one attack per sample across a thread pool.

Each sample gets its own ``HopSkipJump`` engine and its own child
``NoiseGenerator`` spawned from a master seed, so workers never contend
for a random stream and the outcome for a given seed does not depend on
thread scheduling.  The model is shared; oracle calls may block on I/O
and run concurrently.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

from labelmia.attacks.hsja import HopSkipJump
from labelmia.attacks.oracle import Model
from labelmia.attacks.results import AttackResult
from labelmia.config.schema import HSJAConfig
from labelmia.data.samples import Sample
from labelmia.mathutils.noise import NoiseGenerator

logger = logging.getLogger(__name__)


def run_attacks(
    samples: Sequence[Sample],
    model: Model,
    config: HSJAConfig,
    workers: int = 1,
    seed: Optional[int] = None,
) -> list[AttackResult]:
    """Attack every sample and return the results in input order.

    Parameters
    ----------
    samples:
        Samples to attack. All must match ``model.input_size()`` and lie
        within the clip bounds; this is checked up front so a bad sample
        fails the run before any query.
    model:
        Shared label-only oracle. Must tolerate concurrent ``predict``
        calls when ``workers > 1``.
    config:
        Attack parameters shared by every engine.
    workers:
        Thread-pool size. ``1`` runs sequentially in the calling thread.
    seed:
        Master seed; ``None`` derives one from the clock.
    """
    if workers < 1:
        raise ValueError(f"workers must be >= 1, got {workers}")
    streams = NoiseGenerator(seed).spawn(len(samples))
    engines = [HopSkipJump(config, noise=stream) for stream in streams]
    for engine, sample in zip(engines, samples):
        engine.check_sample(sample, model)
    logger.info(
        "Attacking %d samples with %d worker(s), budget %d queries each",
        len(samples), workers, config.max_queries,
    )

    if workers == 1:
        results = [engine.attack(s, model) for engine, s in zip(engines, samples)]
    else:
        with ThreadPoolExecutor(max_workers=workers) as ex:
            futs = [ex.submit(engine.attack, s, model) for engine, s in zip(engines, samples)]
            results = [fut.result() for fut in futs]

    n_success = sum(r.is_success for r in results)
    logger.info("Finished: %d/%d attacks succeeded", n_success, len(results))
    return results
