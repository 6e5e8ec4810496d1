"""Audio device utilities."""

from typing import List

from ..utils.exceptions import MemoRecorderError
from . import player


def list_devices() -> List[str]:
    """Describe every PortAudio device as ``"<index>: <name> (in/out)"``."""
    if player.sd is None:
        raise MemoRecorderError("sounddevice/PortAudio is not available")

    lines = []
    for i, dev in enumerate(player.sd.query_devices()):
        io = []
        if dev['max_input_channels'] > 0:
            io.append('in')
        if dev['max_output_channels'] > 0:
            io.append('out')
        io_str = '/'.join(io) if io else 'none'
        lines.append(f"{i}: {dev['name']} ({io_str})")
    return lines
