"""2D particle simulation core: gravity, wall reflection, elastic collisions and SPH pressure."""

from . import core
from . import physics
from . import scenarios

# Import API to trigger backend registration
from . import api

from .api import (
    # Core functions
    integrate,
    resolve_collisions,
    update_density,
    apply_pressure,
    step,
    TickReport,

    # Backend management
    set_backend,
    get_backend,
    list_backends,
    auto_select_backend,
    print_backend_info,

    # Core classes
    ParticleArrays,
    SpikyKernel2D
)
from .config import ConfigurationError, DomainBounds, SimulationConfig, SpawnConfig
from .simulation import ParticleSimulation

__version__ = "0.1.0"

__all__ = [
    # Modules
    'core',
    'physics',
    'scenarios',

    # API functions
    'integrate',
    'resolve_collisions',
    'update_density',
    'apply_pressure',
    'step',
    'TickReport',

    # Backend management
    'set_backend',
    'get_backend',
    'list_backends',
    'auto_select_backend',
    'print_backend_info',

    # Configuration
    'ConfigurationError',
    'DomainBounds',
    'SimulationConfig',
    'SpawnConfig',

    # Core classes
    'ParticleArrays',
    'ParticleSimulation',
    'SpikyKernel2D'
]
