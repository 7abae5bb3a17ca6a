"""
Device management utilities for GPU/CPU computation.

Device parsing for the engine's matrices and backend selection for the
spectral decomposition service.
"""

from typing import Optional, Union
import torch
import warnings

from ..base.errors import ConfigurationError


def cuda_available() -> bool:
    """Whether a CUDA device can be used."""
    return torch.cuda.is_available()


def get_default_device() -> torch.device:
    """Get the default device based on availability.

    Returns:
        Default device (cuda if available, else cpu)
    """
    if cuda_available():
        return torch.device('cuda')
    return torch.device('cpu')


def parse_device(device: Optional[Union[str, torch.device]] = None) -> torch.device:
    """Parse device specification.

    Args:
        device: Device specification
            - None or 'cpu': Use CPU (the engine's matrices default to host memory)
            - 'auto': Use best available
            - 'cuda': Use default CUDA device
            - 'cuda:X': Use CUDA device X
            - torch.device: Use as-is

    Returns:
        Parsed device
    """
    if device is None:
        return torch.device('cpu')

    if isinstance(device, torch.device):
        return device

    if not isinstance(device, str):
        raise TypeError(f"Device must be str or torch.device, got {type(device)}")

    if device == 'auto':
        return get_default_device()
    if device == 'cpu':
        return torch.device('cpu')
    if device.startswith('cuda'):
        if not cuda_available():
            warnings.warn("CUDA not available, falling back to CPU")
            return torch.device('cpu')
        return torch.device(device)
    raise ConfigurationError(f"Unknown device: {device}")


def clear_cache(device: Optional[torch.device] = None) -> None:
    """Release cached CUDA memory after a failed device-side decomposition.

    Args:
        device: Device to clear (None for all)
    """
    if (device is None or device.type == 'cuda') and cuda_available():
        torch.cuda.empty_cache()
