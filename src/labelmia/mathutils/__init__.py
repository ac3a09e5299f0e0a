"""Numeric primitives used by the attack engine."""

from labelmia.mathutils.distance import (
    cosine_similarity,
    interpolate,
    l0_distance,
    l2_distance,
    l2_norm,
    linf_distance,
    normalize,
    project_to_sphere,
)
from labelmia.mathutils.noise import (
    NoiseGenerator,
    default_generator,
    gen_gaussian,
    gen_uniform,
    set_seed,
)
from labelmia.mathutils.stats import arg_max, mean_vector, softmax
from labelmia.mathutils.vectors import (
    clip,
    clone,
    new_vector,
    vector_add,
    vector_mul,
    vector_scale,
    vector_sub,
)

__all__ = [
    "NoiseGenerator",
    "arg_max",
    "clip",
    "clone",
    "cosine_similarity",
    "default_generator",
    "gen_gaussian",
    "gen_uniform",
    "interpolate",
    "l0_distance",
    "l2_distance",
    "l2_norm",
    "linf_distance",
    "mean_vector",
    "new_vector",
    "normalize",
    "project_to_sphere",
    "set_seed",
    "softmax",
    "vector_add",
    "vector_mul",
    "vector_scale",
    "vector_sub",
]
