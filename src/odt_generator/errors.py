"""!
@brief Exception hierarchy shared by ODT Generator modules.
@details Individual modules declare the concrete errors they raise; this base
lets the command-line front-end report every generator failure uniformly.
"""
from __future__ import annotations


class OdtGeneratorError(RuntimeError):
    """!
    @brief Base class for failures surfaced to the command-line interface.
    """


__all__ = ["OdtGeneratorError"]
