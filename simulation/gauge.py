import math


class PressureGauge:
    """Logarithmic pressure gauge saturating at its display bounds (Pa)."""

    def __init__(self, p_min=1e2, p_max=1e7):
        self.p_min = p_min
        self.p_max = p_max
        self._log_min = math.log10(p_min)
        self._log_span = math.log10(p_max) - self._log_min

    def fill_fraction(self, pressure):
        clamped = max(self.p_min, min(self.p_max, pressure))
        norm = (math.log10(clamped) - self._log_min) / self._log_span
        return max(0.0, min(1.0, norm))

    def fill_height(self, pressure, gauge_height):
        return math.floor(gauge_height * self.fill_fraction(pressure))
