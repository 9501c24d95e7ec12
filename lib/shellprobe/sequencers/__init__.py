"""Probe sequencers for the supported exchange variants."""

from lib.shellprobe.sequencers.base import ProbeSequencer
from lib.shellprobe.sequencers.line import LineProbe
from lib.shellprobe.sequencers.registry import SequencerRegistry, get_sequencer
from lib.shellprobe.sequencers.telnet import TelnetProbe

__all__ = [
    "ProbeSequencer",
    "TelnetProbe",
    "LineProbe",
    "SequencerRegistry",
    "get_sequencer",
]
