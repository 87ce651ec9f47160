"""Remote Gateway Polyglot NodeServer for EISY/Polisy.

This module provides the Controller class for the remote-gateway-pg3x
NodeServer. The Controller loads the device list, creates a node for every
gate and switch, listens to the MQTT position feed for the gates and sends
relay triggers to the remote gateway over HTTP.

Copyright: (C) 2025
"""

# std libraries
import json, yaml, time, logging, hashlib
from threading import Event, Condition
from typing import Dict, List, Optional, Any

# external libraries
from udi_interface import Node, LOGGER, Custom, LOG_HANDLER
from paho.mqtt.client import Client
from paho.mqtt.enums import CallbackAPIVersion

# personal libraries
from nodes.GateDevice import GateDevice
from nodes.TriggerPublisher import TriggerPublisher, DEFAULT_TIMEOUT

# Nodes
from nodes.RGGate import RGGate
from nodes.RGSwitch import RGSwitch

DEFAULT_CONFIG = {
    'mqtt_server': 'localhost',
    'mqtt_port': 1884,
    'mqtt_user': 'admin',
    'mqtt_password': 'admin',
    'status_prefix': None,
    'trigger_timeout': DEFAULT_TIMEOUT,
}

# position_feed: node listens to the MQTT topic named by its key
DEVICE_CONFIG = {
    'gate': {'node_class': RGGate, 'position_feed': True},
    'switch': {'node_class': RGSwitch, 'position_feed': False},
}

# ISY node addresses are at most 14 characters
ADDRESS_LEN = 14


class Controller(Node):
    """Controller class for the Remote Gateway NodeServer.

    Attributes:
        id (str): Unique identifier for the controller node ('rgctrl').
        hb (int): Heartbeat toggle.
        numNodes (int): Number of device nodes.
        devlist (list): Configured devices, as dictionaries.
        general (dict): 'general' section of the devfile.
        status_topics (list): MQTT position topics to subscribe to.
        status_topics_to_devices (Dict[str, str]): Topic to node address.
        publisher (TriggerPublisher): Sends relay triggers.
        mqttc (Client): MQTT client for the position feed, None when unused.
    """
    id = 'rgctrl'

    def __init__(self, poly, primary, address, name):
        """Initialize the Controller node.

        Args:
            poly: Polyglot interface instance.
            primary: Primary node address (the controller itself).
            address: Address of this controller node.
            name: Name of this controller node.
        """
        super().__init__(poly, primary, address, name)

        self.hb = 0 # heartbeat
        self.numNodes = 0

        # node creation handshake
        self.n_queue = []
        self.queue_condition = Condition()

        self.ready_event = Event()
        self.all_handlers_st_event = Event()
        self.discovery_in = False

        # startup completion flags
        self.handler_params_st = None
        self.handler_data_st = None
        self.handler_typedparams_st = None
        self.handler_typeddata_st = None

        self.devlist = []
        # e.g. [{'key': 'gate/front/position', 'type': 'gate', 'displayName': 'Front Gate',
        # 'triggerUrl': 'http://relay.local/toggle', 'triggerMethod': 'GET'}]
        self.general = {}
        self.status_topics = []
        self.status_topics_to_devices: Dict[str, str] = {}

        self.mqttc = None
        self.mqtt_server = DEFAULT_CONFIG['mqtt_server']
        self.mqtt_port = DEFAULT_CONFIG['mqtt_port']
        self.mqtt_user = DEFAULT_CONFIG['mqtt_user']
        self.mqtt_password = DEFAULT_CONFIG['mqtt_password']
        self.status_prefix = DEFAULT_CONFIG['status_prefix']
        self.publisher = TriggerPublisher(DEFAULT_CONFIG['trigger_timeout'])

        # Create data storage classes
        self.Notices         = Custom(poly, 'notices')
        self.Parameters      = Custom(poly, 'customparams')
        self.Data            = Custom(poly, 'customdata')
        self.TypedParameters = Custom(poly, 'customtypedparams')
        self.TypedData       = Custom(poly, 'customtypeddata')

        # Subscribe to various events from the Interface class.
        self.poly.subscribe(self.poly.START,             self.start, address)
        self.poly.subscribe(self.poly.POLL,              self.poll)
        self.poly.subscribe(self.poly.LOGLEVEL,          self.handleLevelChange)
        self.poly.subscribe(self.poly.CUSTOMPARAMS,      self.parameterHandler)
        self.poly.subscribe(self.poly.CUSTOMDATA,        self.dataHandler)
        self.poly.subscribe(self.poly.STOP,              self.stop)
        self.poly.subscribe(self.poly.DISCOVER,          self.discover_cmd)
        self.poly.subscribe(self.poly.CUSTOMTYPEDDATA,   self.typedDataHandler)
        self.poly.subscribe(self.poly.CUSTOMTYPEDPARAMS, self.typedParameterHandler)
        self.poly.subscribe(self.poly.ADDNODEDONE,       self.node_queue)
        self.poly.subscribe(self.poly.DELETE,            self.delete)

        # Once we call ready(), the interface will start publishing data.
        self.poly.ready()
        self.poly.addNode(self, conn_status='ST')


    def start(self):
        """Start the NodeServer.

        Waits for the configuration handlers, discovers the devices and,
        when any gate has a position topic, connects to the MQTT broker.
        Errors leave ST at 2 and a message in the notices.
        """
        LOGGER.info(f"Remote Gateway PG3 NodeServer {self.poly.serverdata['version']}")
        self.Notices.clear()
        self.Notices['hello'] = 'Start-up'
        self.setDriver('ST', 1, report = True, force = True)

        self.poly.updateProfile()
        self.poly.setCustomParamsDoc()
        self.heartbeat()

        LOGGER.warning('Waiting for all handlers to complete...')
        self.Notices['waiting'] = 'Waiting on valid configuration'
        self.all_handlers_st_event.wait(timeout=60)
        if not self.all_handlers_st_event.is_set():
            LOGGER.error("Timed out waiting for handlers to startup")
            self.setDriver('ST', 2) # start-up failed
            self.Notices['error'] = 'Error start-up timeout.  Check config & restart'
            return

        if not self.discover_cmd():
            LOGGER.error(f'First discovery failed!!! exit {self.name}')
            self.Notices['error'] = 'Error first discovery.  Check config & restart'
            self.setDriver('ST', 2)
            return

        self.Notices.delete('waiting')
        LOGGER.info(f'Started Remote Gateway NodeServer {self.poly.serverdata}')
        self.query(command = f"{self.name}: STARTUP")
        self.ready_event.set()

        if self.Notices.get('hello'):
            self.Notices.delete('hello')
        LOGGER.info(f'exit {self.name}')


    def _mqtt_start(self):
        """Connect to the MQTT broker carrying the position feed.

        Returns:
            bool: True if connected, False otherwise.
        """
        self.mqttc = Client(CallbackAPIVersion.VERSION1)
        self.mqttc.on_connect = self._on_connect
        self.mqttc.on_disconnect = self._on_disconnect  # type: ignore
        self.mqttc.on_message = self._on_message
        self.mqttc.username_pw_set(self.mqtt_user, self.mqtt_password)

        try:
            self.mqttc.connect(self.mqtt_server, self.mqtt_port, keepalive=10)
            self.mqttc.loop_start()
        except Exception as ex:
            LOGGER.error(f"Error connecting to MQTT broker: {ex}")
            self.Notices['mqtt'] = 'Error on user MQTT connection'
            self.mqttc = None
            return False

        while not self.mqttc.is_connected():
            LOGGER.error("Start: Waiting on user MQTT connection")
            self.Notices['mqtt'] = 'Waiting on user MQTT connection'
            time.sleep(3)

        self.Notices.clear()
        LOGGER.info("MQTT start done")
        return True


    def node_queue(self, data):
        """Record that Polyglot finished adding a node (ADDNODEDONE)."""
        address = data.get('address')
        if address:
            with self.queue_condition:
                self.n_queue.append(address)
                self.queue_condition.notify()


    def wait_for_node_done(self):
        """Block until node_queue reports an added node."""
        with self.queue_condition:
            while not self.n_queue:
                self.queue_condition.wait(timeout = 0.2)
            self.n_queue.pop()


    def dataHandler(self, data):
        LOGGER.debug(f'enter: Loading data {data}')
        if data is None:
            LOGGER.warning("No custom data")
        else:
            self.Data.load(data)
        self.handler_data_st = True
        self.check_handlers()


    def parameterHandler(self, params):
        """Load custom parameters entered in the Polyglot dashboard."""
        LOGGER.info('parmHandler: Loading parameters now')
        self.Parameters.load(params)
        self.handler_params_st = True
        self.check_handlers()
        LOGGER.info('parmHandler Done...')


    def typedParameterHandler(self, params):
        LOGGER.debug('Loading typed parameters now')
        self.TypedParameters.load(params)
        self.handler_typedparams_st = True
        self.check_handlers()


    def typedDataHandler(self, data):
        LOGGER.debug('Loading typed data now')
        if data is None:
            LOGGER.warning("No custom typed data")
        else:
            self.TypedData.load(data)
        self.handler_typeddata_st = True
        self.check_handlers()


    def check_handlers(self):
        """Set all_handlers_st_event once every startup handler has run."""
        if (self.handler_params_st and self.handler_data_st and
            self.handler_typedparams_st and self.handler_typeddata_st):
            self.all_handlers_st_event.set()


    def checkParams(self):
        """Load the device list and connection parameters.

        The devfile is read first; devlist entries are then upserted on
        top of it, by key.

        Returns:
            bool: True if configuration loaded successfully, False otherwise.
        """
        if not self.Parameters.get("devfile") and not self.Parameters.get("devlist"):
            LOGGER.error("checkParams: No devfile or devlist configured! Must be configured.")
            return False

        self.devlist = []
        self.general = {}
        if self.Parameters.get("devfile"):
            if not self._load_devfile_config():
                return False
        if self.Parameters.get("devlist"):
            if not self._load_devlist_config():
                return False

        return self._load_parameters()


    def _load_devfile_config(self):
        """Load devices and the general section from the YAML devfile.

        Returns:
            bool: True if configuration loaded successfully, False otherwise.
        """
        devfile_path = self.Parameters["devfile"]
        if not devfile_path or not isinstance(devfile_path, str):
            LOGGER.error("Invalid devfile path provided")
            return False

        try:
            with open(devfile_path, 'r', encoding='utf-8') as file:
                dev_yaml = yaml.safe_load(file)
        except (OSError, yaml.YAMLError) as ex:
            error_type = "open" if isinstance(ex, OSError) else "parse"
            LOGGER.error(f"Failed to {error_type} {devfile_path}: {ex}")
            return False

        if not isinstance(dev_yaml, dict) or "devices" not in dev_yaml:
            LOGGER.error(f"Device file {devfile_path} is missing devices section")
            return False
        devices = dev_yaml.get("devices") or []
        general = dev_yaml.get("general") or []
        LOGGER.info(f"devices = {devices}")
        LOGGER.info(f"general = {general}")

        self.devlist = list(devices)
        self.general = {k: v for d in general for k, v in d.items()}
        return True


    def _load_devlist_config(self):
        """Upsert devices from the devlist JSON parameter.

        The parameter holds one device object or a list of them.

        Returns:
            bool: True if configuration loaded successfully, False otherwise.
        """
        devlist_data = self.Parameters["devlist"]
        try:
            if isinstance(devlist_data, str):
                parsed_data = json.loads(devlist_data)
            else:
                parsed_data = devlist_data
        except (json.JSONDecodeError, TypeError) as ex:
            LOGGER.error(f"Failed to parse devlist: {ex}")
            return False

        entries = parsed_data if isinstance(parsed_data, list) else [parsed_data]
        for entry in entries:
            if not isinstance(entry, dict):
                LOGGER.error(f"Devlist entries must be objects, got {entry!r}")
                return False
            self.upsert_by_key(self.devlist, entry)
        return True


    def upsert_by_key(self, config_list, new_entry):
        """Replace the entry with the same key, or append new_entry."""
        new_key = new_entry.get('key')
        for i, entry in enumerate(config_list):
            if entry.get('key') == new_key:
                config_list[i] = new_entry
                return
        config_list.append(new_entry)


    def _load_parameters(self) -> bool:
        """Resolve MQTT and trigger parameters.

        Precedence: Polyglot parameters, then the devfile general section,
        then DEFAULT_CONFIG.
        """
        try:
            self.mqtt_server = self._get_str(
                self.Parameters.get("mqtt_server"),
                self.general.get("mqtt_server"),
                DEFAULT_CONFIG.get("mqtt_server")
            )
            self.mqtt_port = self._get_int(
                self.Parameters.get("mqtt_port"),
                self.general.get("mqtt_port"),
                DEFAULT_CONFIG.get("mqtt_port")
            )
            self.mqtt_user = self._get_str(
                self.Parameters.get("mqtt_user"),
                self.general.get("mqtt_user"),
                DEFAULT_CONFIG.get("mqtt_user")
            )
            self.mqtt_password = self._get_str(
                self.Parameters.get("mqtt_password"),
                self.general.get("mqtt_password"),
                DEFAULT_CONFIG.get("mqtt_password")
            )
            self.status_prefix = self._get_str(
                self.Parameters.get("status_prefix"),
                self.general.get("status_prefix")
            )
            self.publisher.timeout = self._get_int(
                self.Parameters.get("trigger_timeout"),
                self.general.get("trigger_timeout"),
                DEFAULT_CONFIG.get("trigger_timeout")
            )
        except (ValueError, TypeError) as ex:
            LOGGER.error(f"Failed to parse parameters: {ex}")
            return False
        return True


    @staticmethod
    def _get_str(*args: Optional[Any]) -> Optional[str]:
        """Return the first argument that is a str, or None."""
        for val in args:
            if isinstance(val, str):
                return val
        return None


    @staticmethod
    def _get_int(*args: Optional[Any]) -> Optional[int]:
        """Return the first argument that is an int or a digit string, or None."""
        for val in args:
            if isinstance(val, int) and not isinstance(val, bool):
                return val
            if isinstance(val, str) and val.isdigit():
                return int(val)
        return None


    def handleLevelChange(self, level):
        """Handle log level changes from Polyglot."""
        LOGGER.info(f'enter: level={level}')
        if level['level'] < 10:
            LOGGER.info("Setting basic config to DEBUG...")
            LOG_HANDLER.set_basic_config(True,logging.DEBUG)
        else:
            LOGGER.info("Setting basic config to WARNING...")
            LOG_HANDLER.set_basic_config(True,logging.WARNING)
        LOGGER.info(f'exit: level={level}')


    def poll(self, flag):
        """Heartbeat on short poll once start-up is through."""
        if not self.ready_event.is_set():
            LOGGER.debug("Node not ready yet, exiting")
            return

        if 'shortPoll' in flag:
            LOGGER.debug('shortPoll (controller)')
            self.heartbeat()


    def query(self, command=None):
        """Ask every node to report its drivers."""
        LOGGER.info(f"Enter {command}")
        nodes = self.poly.getNodes()
        for node in nodes:
            nodes[node].reportDrivers()
        LOGGER.debug("Exit")


    def discover_cmd(self, command=None):
        """Load the configuration and create or remove device nodes.

        Called at start-up and by the DISCOVER command.

        Returns:
            bool: True if discovery completed successfully, False otherwise.
        """
        LOGGER.info(command)
        success = False
        if self.discovery_in:
            LOGGER.info('Discover already running.')
            return success

        self.discovery_in = True
        LOGGER.info("In Discovery...")

        if self.checkParams() and self._discover():
            success = True
            LOGGER.info("Discovery Success")
        else:
            LOGGER.error("Discovery Failure")
        self.discovery_in = False
        return success


    def _discover(self):
        """Create missing nodes, drop unconfigured ones, rebuild topic routing.

        Returns:
            bool: True if discovery completed successfully, False otherwise.
        """
        success = False
        nodes_existing = self.poly.getNodes()
        LOGGER.debug(f"current nodes = {nodes_existing}")
        nodes_old = [node for node in nodes_existing if node != self.address]
        nodes_new = []
        old_topics = list(self.status_topics_to_devices)

        try:
            self.status_topics = []
            self.status_topics_to_devices = {}
            self._discover_nodes(nodes_existing, nodes_new)
            self._cleanup_nodes(nodes_new, nodes_old)
            self._unsubscribe_stale_topics(old_topics)
            self.numNodes = len(nodes_new)
            self.setDriver('GV0', self.numNodes)
            success = self._mqtt_ensure()
            LOGGER.info(f"Discovery complete. success = {success}")
        except Exception as ex:
            LOGGER.error(f'Discovery Failure: {ex}', exc_info=True)
        return success


    def _mqtt_ensure(self):
        """Bring the position feed in line with the discovered topics.

        Connects on the first discovery that yields a position topic and
        resubscribes an already connected client.

        Returns:
            bool: False only if a needed connection failed.
        """
        if not self.status_topics:
            LOGGER.info("No position topics configured, MQTT not needed")
            return True
        if self.mqttc is None:
            if not self._mqtt_start():
                LOGGER.error('MQTT connection failed!!!')
                self.Notices['error'] = 'Error MQTT connection.  Check config & rediscover'
                return False
        elif self.mqttc.is_connected():
            self.mqtt_subscribe()
        return True


    def _discover_nodes(self, nodes_existing, nodes_new):
        """Create a node for every valid device not yet known to Polyglot.

        Invalid entries and unknown types are logged and skipped; the rest
        of the list is still processed.
        """
        LOGGER.info("discovery start")
        for dev in self.devlist:
            if not self._validate_device_definition(dev):
                continue
            if dev["type"] not in DEVICE_CONFIG:
                LOGGER.error(f"Device type {dev['type']} is not supported, skipping {dev['key']}")
                continue

            device = GateDevice.from_config(dev)
            address = self._format_device_address(dev)
            if address in nodes_new:
                LOGGER.error(f"Address {address} of {dev['key']} already in use, skipping")
                continue

            if address in nodes_existing:
                LOGGER.info(f"Restoring existing {device.device_type}, {device.display_name}")
            else:
                self._create_device_node(device, address)
                self.wait_for_node_done()
            self._add_device_status_topics(device, address)
            nodes_new.append(address)
        LOGGER.info("Done adding nodes.")
        LOGGER.debug(f'DEVLIST: {self.devlist}')


    def _validate_device_definition(self, dev):
        """Check that a device entry is a dict carrying 'key' and 'type'."""
        required_fields = ["key", "type"]
        if not isinstance(dev, dict) or not all(dev.get(field) for field in required_fields):
            LOGGER.error(f"Invalid device definition: {json.dumps(dev, default=str)}")
            return False
        return True


    def _create_device_node(self, device: GateDevice, address: str):
        """Instantiate and add the node class registered for the device type."""
        node_class = DEVICE_CONFIG[device.device_type]["node_class"]
        LOGGER.info(f"Adding {device.device_type}, {device.display_name}")
        self.poly.addNode(node_class(self.poly, self.address, address, device.display_name, device))


    def _add_device_status_topics(self, device: GateDevice, address: str):
        """Route the device's position topic to its node, if it has a feed."""
        if not DEVICE_CONFIG[device.device_type].get("position_feed"):
            return
        self._add_status_topics(address, [device.key])


    def _add_status_topics(self, address: str, status_topics: List[str]):
        for raw_topic in status_topics:
            status_topic = self._normalize_topic(raw_topic, self.status_prefix)
            if status_topic not in self.status_topics:
                self.status_topics.append(status_topic)
            self.status_topics_to_devices[status_topic] = address


    def _normalize_topic(self, topic: Optional[str], prefix: Optional[str]) -> str:
        """Replace a leading '~' in topic with prefix."""
        if topic is None:
            return ""
        if topic.startswith("~") and prefix is not None:
            return prefix + topic[1:]
        return topic


    def _cleanup_nodes(self, nodes_new, nodes_old):
        """Delete nodes that are no longer configured.

        Returns:
            bool: Always returns True.
        """
        for node in nodes_old:
            if node not in nodes_new:
                LOGGER.info(f"need to delete node {node}")
                old = self.poly.getNode(node)
                if hasattr(old, 'shutdown'):
                    old.shutdown()
                self.poly.delNode(node)
                LOGGER.info("Done Cleanup")
        return True


    def _unsubscribe_stale_topics(self, old_topics):
        """Unsubscribe topics routed before discovery that no node owns now."""
        for status_topic in old_topics:
            if status_topic in self.status_topics_to_devices:
                continue
            if self.mqttc is not None:
                self.mqttc.unsubscribe(status_topic)
            LOGGER.info(f"remove topic = {status_topic}")


    def _on_connect(self, _mqttc, _userdata, _flags, rc):
        """Subscribe to the position topics on every (re)connect."""
        if rc == 0:
            LOGGER.info("MQTT Connected")
            self.mqtt_subscribe()
        else:
            LOGGER.error(f"MQTT Connect failed with rc:{rc}")


    def _on_disconnect(self, _mqttc, _userdata, rc):
        """Reconnect after an unexpected disconnection."""
        if rc != 0:
            LOGGER.warning("MQTT disconnected, trying to re-connect")
            try:
                self.mqttc.reconnect()
            except Exception as ex:
                LOGGER.error(f"Error connecting to MQTT broker {ex}")
        else:
            LOGGER.info("MQTT graceful disconnection")


    def _on_message(self, _mqttc, _userdata, message):
        """Route a position message to the gate owning its topic.

        Messages received while discovery is running are dropped.
        """
        if self.discovery_in:
            return

        topic = message.topic
        try:
            payload = message.payload.decode("utf-8")
        except UnicodeDecodeError as ex:
            LOGGER.error(f"Undecodable message from {topic}: {ex}")
            return
        LOGGER.info(f"Received message from {topic}: {payload}")

        device_address = self._dev_by_topic(topic)
        if not device_address:
            LOGGER.warning(f"No device found for topic: {topic}")
            return
        try:
            self.poly.getNode(device_address).updateInfo(payload, topic)
        except Exception as ex:
            LOGGER.error(f"Failed to process message from {topic}: {ex}", exc_info=True)


    def _dev_by_topic(self, topic: str) -> Optional[str]:
        """Return the node address subscribed to topic, or None."""
        return self.status_topics_to_devices.get(topic, None)


    def _format_device_address(self, dev) -> str:
        """Derive a valid ISY node address from the device key.

        Keys too long for an address keep a readable head and end in a
        short digest of the full key, so distinct topics sharing a long
        prefix stay distinct.
        """
        key = str(dev["key"])
        name = key.replace("_", "").replace("-", "_").replace("/", "_")
        if len(name) > ADDRESS_LEN:
            digest = hashlib.sha1(key.encode("utf-8")).hexdigest()[:6]
            name = f"{name[:ADDRESS_LEN - 7]}_{digest}"
        return self.poly.getValidAddress(name)


    def cmd_publish(self, url, method=None, payload=None):
        """Send one relay trigger to the remote gateway.

        Returns at once; see TriggerPublisher.publish.
        """
        LOGGER.debug(f"cmd_publish: {method} {url}, payload: {payload}")
        return self.publisher.publish(url, method, payload)


    def mqtt_subscribe(self):
        """Subscribe to every position topic and query the device nodes."""
        LOGGER.info("MQTT subscribing...")
        results = []
        for stopic in self.status_topics:
            results.append((stopic, tuple(self.mqttc.subscribe(stopic))))

        for (topic, (result, mid)) in results:
            if result == 0:
                LOGGER.info(f"Subscribed to {topic} MID: {mid}, res: {result}")
            else:
                LOGGER.error(f"Failed to subscribe {topic} MID: {mid}, res: {result}")

        for node in self.poly.getNodes():
            if node != self.address:
                self.poly.getNode(node).query()
        LOGGER.info("Subscriptions Done")


    def delete(self, command=None):
        """Called by Polyglot when the NodeServer is deleted."""
        LOGGER.info(command)
        self.setDriver('ST', 0, report = True, force = True)
        LOGGER.info('bye bye ... deleted.')


    def stop(self, command=None):
        """Cancel gate timers and disconnect from MQTT."""
        LOGGER.info(command)
        self.setDriver('ST', 0, report = True, force = True)
        self.Notices.clear()
        for address, node in self.poly.getNodes().items():
            if address != self.address and hasattr(node, 'shutdown'):
                node.shutdown()
        if self.mqttc:
            self.mqttc.loop_stop()
            self.mqttc.disconnect()
        LOGGER.info('NodeServer stopped.')


    def heartbeat(self):
        """Alternate DON/DOF to the ISY so programs can watch the NodeServer."""
        LOGGER.debug(f'heartbeat: hb={self.hb}')
        command = "DOF" if self.hb else "DON"
        self.reportCmd(command, 2)
        self.hb = not self.hb
        LOGGER.debug("Exit")


    # Status that this node has. Should match the 'sts' section
    # of the nodedef file.
    drivers = [
        {'driver': 'ST', 'value': 1, 'uom': 25, 'name': "Controller Status"},
        {'driver': 'GV0', 'value': 0, 'uom': 107, 'name': "NumberOfNodes"},
    ]

    # Commands that this node can handle.  Should match the
    # 'accepts' section of the nodedef file.
    commands = {
        'DISCOVER': discover_cmd,
        'QUERY': query,
    }
