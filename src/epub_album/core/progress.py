"""
Suivi de progression des opérations longues.
"""

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float, str], None]


class ProgressReporter:
    """
    Transmet la progression à un callback optionnel.

    Les fractions transmises sont bornées à [0, 1] et ne décroissent jamais.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self._callback = callback
        self._last = 0.0

    @property
    def last(self) -> float:
        return self._last

    def report(self, fraction: float, message: str):
        fraction = max(self._last, min(1.0, max(0.0, fraction)))
        self._last = fraction
        logger.debug("Progress %.0f%% - %s", fraction * 100, message)
        if self._callback is not None:
            self._callback(fraction, message)

    def step(self, start: float, span: float, index: int, total: int, message: str):
        """Rapporte l'avancement de l'élément ``index`` sur ``total`` dans [start, start+span]."""
        fraction = start + (index / total) * span if total else start
        self.report(fraction, message)
