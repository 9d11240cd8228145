from .base import Component, StampData, UpdateData  # noqa: F401
from .passive import Resistor, Switch, Potentiometer, Capacitor, Coil  # noqa: F401
from .sources import VoltageSource  # noqa: F401
from .semiconductors import Diode, LED, BJT, MOSFET, thermal_voltage  # noqa: F401
from .nonlinear import GenericNonlinear  # noqa: F401
from .relay import Relay  # noqa: F401
from .logic import LogicGate, ANDGate, NOTGate, XORGate  # noqa: F401
