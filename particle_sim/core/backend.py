"""
Backend selection and dispatch system for the fluid stages.

Supports two backends:
1. CPU (NumPy) - baseline vectorized implementation
2. Numba - JIT-compiled parallel loops, faster for large populations

The backend can be selected globally or per-function call.
"""

import enum
import logging
import warnings
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import numba

from ..config import ConfigurationError

logger = logging.getLogger(__name__)


class Backend(enum.Enum):
    """Available computation backends."""
    CPU = "cpu"      # NumPy
    NUMBA = "numba"  # Numba JIT


@dataclass
class BackendInfo:
    """Information about a backend."""
    backend: Backend
    device_name: str = "CPU"


class BackendManager:
    """Manages backend selection and dispatching."""

    # Population above which the Numba kernels beat the NumPy ones
    NUMBA_THRESHOLD = 500

    def __init__(self):
        self._current_backend = Backend.CPU
        self._backends: Dict[Backend, BackendInfo] = {}
        self._implementations: Dict[str, Dict[Backend, Callable]] = {}
        self._detect_backends()

    def _detect_backends(self):
        """Describe the devices behind each backend."""
        self._backends[Backend.CPU] = BackendInfo(
            backend=Backend.CPU,
            device_name="CPU (NumPy)"
        )
        self._backends[Backend.NUMBA] = BackendInfo(
            backend=Backend.NUMBA,
            device_name=f"CPU (Numba {numba.__version__}, {numba.config.NUMBA_NUM_THREADS} threads)"
        )

    @property
    def current_backend(self) -> Backend:
        """Get current backend."""
        return self._current_backend

    def info(self, backend: Backend) -> BackendInfo:
        return self._backends[backend]

    def set_backend(self, backend: Backend):
        """Set the current backend.

        Args:
            backend: Backend to use
        """
        self._current_backend = backend
        logger.info("Backend set to: %s", self._backends[backend].device_name)

    def auto_select_backend(self, n_particles: int) -> Backend:
        """Automatically select best backend based on problem size.

        Args:
            n_particles: Number of particles

        Returns:
            Selected backend
        """
        if n_particles > self.NUMBA_THRESHOLD:
            return Backend.NUMBA
        return Backend.CPU

    def register_implementation(self, function_name: str, backend: Backend,
                                implementation: Callable):
        """Register a backend-specific implementation.

        Args:
            function_name: Name of the function
            backend: Backend for this implementation
            implementation: The implementation function
        """
        if function_name not in self._implementations:
            self._implementations[function_name] = {}
        self._implementations[function_name][backend] = implementation

    def get_implementation(self, function_name: str,
                           backend: Optional[Backend] = None) -> Callable:
        """Get implementation for a function.

        Args:
            function_name: Name of the function
            backend: Backend to use (None for current)

        Returns:
            Implementation function

        Raises:
            ValueError: If no implementation found
        """
        if backend is None:
            backend = self._current_backend

        if function_name not in self._implementations:
            raise ValueError(f"No implementations registered for {function_name}")

        # Try requested backend
        if backend in self._implementations[function_name]:
            return self._implementations[function_name][backend]

        # Fall back to CPU
        if Backend.CPU in self._implementations[function_name]:
            warnings.warn(f"No {backend.value} implementation for {function_name}, using CPU")
            return self._implementations[function_name][Backend.CPU]

        raise ValueError(f"No implementation found for {function_name}")

    def dispatch(self, function_name: str, *args, backend: Optional[Backend] = None, **kwargs):
        """Dispatch a function call to appropriate backend.

        Args:
            function_name: Name of the function
            *args: Positional arguments
            backend: Backend to use (None for current)
            **kwargs: Keyword arguments

        Returns:
            Function result
        """
        impl = self.get_implementation(function_name, backend)
        return impl(*args, **kwargs)

    def describe(self) -> str:
        """Human-readable summary of the backends."""
        lines = ["Backend Information", "=" * 60]
        for backend, info in self._backends.items():
            lines.append(f"  {backend.value:6s}: {info.device_name}")
        lines.append(f"Current backend: {self._current_backend.value}")
        lines.append("=" * 60)
        return "\n".join(lines)


# Global backend manager instance
_backend_manager = BackendManager()


def parse_backend(backend: str) -> Backend:
    """Convert a backend name to ``Backend``.

    Raises:
        ConfigurationError: If the name is not a known backend
    """
    try:
        return Backend(backend.lower())
    except ValueError:
        raise ConfigurationError(f"Invalid backend: {backend}. Choose from: cpu, numba") from None


# Public API
def set_backend(backend: str) -> str:
    """Set the global backend.

    Args:
        backend: 'cpu' or 'numba' (case-insensitive)

    Returns:
        The backend name now in use

    Raises:
        ConfigurationError: If the name is not a known backend
    """
    selected = parse_backend(backend)
    _backend_manager.set_backend(selected)
    return selected.value


def get_backend() -> str:
    """Get current backend name."""
    return _backend_manager.current_backend.value


def list_backends() -> Dict[str, str]:
    """Map each backend name to the device it runs on."""
    return {
        b.value: _backend_manager.info(b).device_name
        for b in Backend
    }


def auto_select_backend(n_particles: int) -> str:
    """Auto-select best backend for particle count."""
    backend = _backend_manager.auto_select_backend(n_particles)
    _backend_manager.set_backend(backend)
    return backend.value


def resolve_backend(backend: Optional[str], n_particles: int) -> Optional[str]:
    """Per-call backend name; 'auto' picks by population without touching the global."""
    if backend == "auto":
        return _backend_manager.auto_select_backend(n_particles).value
    return backend


def print_backend_info():
    """Log backend information."""
    logger.info(_backend_manager.describe())


# Decorator for backend-specific implementations
def backend_function(function_name: str):
    """Decorator to register backend-specific implementations.

    Usage:
        @backend_function("update_density")
        @for_backend(Backend.NUMBA)
        def _update_density_numba(...):
            ...
    """
    def decorator(func):
        # Check if function has _backend attribute set by @for_backend
        if hasattr(func, '_backend'):
            _backend_manager.register_implementation(function_name, func._backend, func)
        return func
    return decorator


def for_backend(backend: Backend):
    """Helper decorator to specify backend."""
    def decorator(func):
        func._backend = backend
        return func
    return decorator


def dispatch(function_name: str, *args, backend: Optional[str] = None, **kwargs):
    """Dispatch function to appropriate backend.

    Args:
        function_name: Name of the function
        *args: Positional arguments
        backend: Override backend (None for current)
        **kwargs: Keyword arguments

    Returns:
        Function result
    """
    backend_enum = parse_backend(backend) if backend else None
    return _backend_manager.dispatch(function_name, *args, backend=backend_enum, **kwargs)
