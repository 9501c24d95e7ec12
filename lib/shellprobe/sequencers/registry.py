"""Probe variant registry."""

from lib.shellprobe.config import ProbeSettings, ProbeVariant
from lib.shellprobe.sequencers.base import ProbeSequencer
from lib.shellprobe.sequencers.line import LineProbe
from lib.shellprobe.sequencers.telnet import TelnetProbe

# Registry of available variants
_SEQUENCER_REGISTRY: dict[str, type[ProbeSequencer]] = {
    ProbeVariant.TELNET.value: TelnetProbe,
    ProbeVariant.LINE.value: LineProbe,
}


class SequencerRegistry:
    """Registry for probe sequencers."""

    @staticmethod
    def get(name: "str | ProbeVariant", settings: ProbeSettings | None = None) -> ProbeSequencer:
        """Get a sequencer by variant name.

        Parameters
        ----------
        name : str | ProbeVariant
            Variant name
        settings : ProbeSettings | None, optional
            Tuning values passed to the sequencer, by default None

        Returns
        -------
        ProbeSequencer
            Sequencer instance

        Raises
        ------
        ValueError
            If the variant is not registered
        """
        key = name.value if isinstance(name, ProbeVariant) else name
        if key not in _SEQUENCER_REGISTRY:
            raise ValueError(f"Unknown probe variant: {key}")

        return _SEQUENCER_REGISTRY[key](settings)

    @staticmethod
    def list_variants() -> list[str]:
        """List all registered variant names."""
        return list(_SEQUENCER_REGISTRY.keys())


def get_sequencer(
    variant: "str | ProbeVariant | None" = None,
    settings: ProbeSettings | None = None,
) -> ProbeSequencer:
    """Get the sequencer for ``variant``, or the configured default.

    Parameters
    ----------
    variant : str | ProbeVariant | None, optional
        Variant name, by default ``settings.variant``
    settings : ProbeSettings | None, optional
        Probe settings, by default loaded from the environment

    Returns
    -------
    ProbeSequencer
        Sequencer instance
    """
    settings = settings or ProbeSettings()
    return SequencerRegistry.get(variant or settings.variant, settings)
