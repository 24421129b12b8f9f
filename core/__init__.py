# Core module - gas dispersion engine and its tick driver
from .errors import ConfigurationError, ReceiverReferenceError
from .gas import DispersionKind, Gas
from .dispersion import DispersionSlot, DispersionUnit
from .receptor import Neuron, Receptor
from .network import GasNetwork
from .engine import Engine
