"""Display strings for the slider labels and the computed-values panel."""

import math


def to_precision(value, digits):
    """Format ``value`` with ``digits`` significant digits.

    Fixed notation is used while the decimal exponent lies in ``[-6, digits)``,
    scientific notation otherwise. The exponent carries no ``+`` sign and no
    zero padding: ``to_precision(24943.39, 4) == "2.494e4"``.
    """
    if value == 0:
        return f"{0:.{digits - 1}f}"
    if not math.isfinite(value):
        return str(value)
    mantissa, exponent = f"{value:.{digits - 1}e}".split("e")
    exponent = int(exponent)
    if exponent < -6 or exponent >= digits:
        return f"{mantissa}e{exponent}"
    return f"{value:.{digits - 1 - exponent}f}"


def format_si(value, unit):
    if value == 0:
        return f"0 {unit}"
    if abs(value) >= 1:
        return f"{to_precision(value, 4)} {unit}"
    exponent = math.floor(math.log10(abs(value)))
    mantissa = value / 10 ** exponent
    return f"{to_precision(mantissa, 3)}e{exponent} {unit}"


class Readout:
    __slots__ = ("temperature", "moles", "volume", "pressure", "slider_labels")

    def __init__(self, temperature, moles, volume, pressure, slider_labels):
        self.temperature = temperature
        self.moles = moles
        self.volume = volume
        self.pressure = pressure
        self.slider_labels = slider_labels

    @classmethod
    def build(cls, temperature, moles, volume, pressure):
        return cls(
            f"{temperature:.1f} K",
            f"{moles:.4f} mol",
            f"{volume:.5f} m³",
            format_si(pressure, "Pa"),
            {"temperature": f"{temperature:.1f}", "moles": f"{moles:.3f}", "volume": f"{volume:.4f}"},
        )

    def to_dict(self):
        return {"temperature": self.temperature, "moles": self.moles, "volume": self.volume,
                "pressure": self.pressure, "slider_labels": dict(self.slider_labels)}
