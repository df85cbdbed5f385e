"""Core components: particles, kernel, spatial grid, and integration."""

from .particles import Particle, ParticleArrays
from .kernel_vectorized import SpikyKernel2D, smoothing_kernel, kernel_slope, kernel_derivative
from .spatial_hash_vectorized import SpatialGrid
from .integrator_vectorized import (
    integrate_euler_vectorized,
    apply_reflective_boundaries_vectorized,
    reflect
)

__all__ = [
    'Particle',
    'ParticleArrays',
    'SpikyKernel2D',
    'smoothing_kernel',
    'kernel_slope',
    'kernel_derivative',
    'SpatialGrid',
    'integrate_euler_vectorized',
    'apply_reflective_boundaries_vectorized',
    'reflect'
]
