"""Pure domain primitives: clock and validation DTOs. Zero I/O."""

from roster_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from roster_kernel.domain.dtos import ValidationError

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "ValidationError",
]
