"""Thermodynamic state of the gas and the ideal gas law."""

# J/(mol·K)
R = 8.31446261815324

# Floors applied only to the values fed into P = nRT/V.
MIN_TEMPERATURE = 0.1
MIN_MOLES = 1e-6
MIN_VOLUME = 1e-8


def ideal_gas_pressure(moles, temperature, volume):
    """Pressure in Pa from P = nRT/V with every operand floored."""
    n_eff = max(MIN_MOLES, moles)
    t_eff = max(MIN_TEMPERATURE, temperature)
    v_eff = max(MIN_VOLUME, volume)
    return n_eff * R * t_eff / v_eff


class ThermodynamicState:
    """Temperature (K), amount (mol) and volume (m³) as read from the sliders.

    Values are kept exactly as delivered so the readouts show what the user
    selected; clamping happens only inside ``pressure``.
    """

    __slots__ = ("temperature", "moles", "volume")

    def __init__(self, temperature, moles, volume):
        self.temperature = temperature
        self.moles = moles
        self.volume = volume

    def update(self, temperature, moles, volume):
        self.temperature = temperature
        self.moles = moles
        self.volume = volume

    def pressure(self):
        return ideal_gas_pressure(self.moles, self.temperature, self.volume)

    def to_dict(self):
        return {"temperature": self.temperature, "moles": self.moles, "volume": self.volume}
