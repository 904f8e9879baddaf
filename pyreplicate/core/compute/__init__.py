"""
Shared compute infrastructure for PyReplicate.

Hardware detection, timing and tolerance tiers shared by every
domain-specific backend. Domain backends live in {domain}/backends/.

Submodules:
    device: Hardware detection and device selection
    timing: Execution timing utilities
    tolerances: Cross-backend comparison tolerances
"""

from pyreplicate.core.compute.device import (
    DeviceInfo,
    detect_gpu,
    get_cpu_info,
    select_device,
)
from pyreplicate.core.compute.timing import Timer, timed, time_call

__all__ = [
    # Device detection
    "DeviceInfo",
    "detect_gpu",
    "get_cpu_info",
    "select_device",
    # Timing
    "Timer",
    "timed",
    "time_call",
]
