"""Node classes used by the Remote Gateway Node Server."""

from .RGGate import RGGate as RGGate
from .RGSwitch import RGSwitch as RGSwitch
from .Controller import Controller as Controller
