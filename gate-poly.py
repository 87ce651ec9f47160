#!/usr/bin/env python3
"""
This is a Plugin/NodeServer for Polyglot v3 written in Python3
It bridges relay driven gates and switches on a remote HTTP gateway
to EISY/Polisy, with gate position fed over MQTT.

remote-gateway-pg3x NodeServer/Plugin for EISY/Polisy

(c) 2025
"""

# std libraries
import sys

# external libraries
import udi_interface

# local imports
from nodes import Controller

LOGGER = udi_interface.LOGGER

VERSION = "0.2.0"

"""
0.2.0
DONE cancel a pending second pulse when a newer target is requested
DONE devlist accepts a list of devices, upserted by key
DONE only connect MQTT when a gate has a position topic

0.1.0
DONE gate node with position inference, obstruction and pulse decisions
DONE stateless switch node
DONE HTTP trigger GET/POST, fire-and-forget
"""

if __name__ == "__main__":
    polyglot = None
    try:
        polyglot = udi_interface.Interface([])
        polyglot.start(VERSION)
        polyglot.updateProfile()

        # 'rgctrl' as both parent and address lets PG3 track node server status
        control = Controller(polyglot, "rgctrl", "rgctrl", "Remote Gateway")

        polyglot.runForever()
    except (KeyboardInterrupt, SystemExit):
        LOGGER.warning("Received interrupt or exit...")
        if polyglot is not None:
            polyglot.stop()
    except Exception as err:
        LOGGER.error("Exception: {0}".format(err), exc_info=True)
    sys.exit(0)
