#
# Copyright (C) 2026 bluebind Developers — LGPL-3.0-or-later
#

# pylint: disable=invalid-name
"""
org.bluez.Device1

Device objects live at [prefix]/{hciN}/dev_XX_XX_XX_XX_XX_XX.
"""
import re

from bluebind.binding import BusMethod, InterfaceBinding
from bluebind.properties import Boolean, ByteArray, Int16, ObjectPath, PropertyRecord, \
        String, StringEnum, StringList, UInt16, UInt32, VariantDict


SERVICE = 'org.bluez'
DEVICE_INTERFACE = 'org.bluez.Device1'
DEFAULT_PREFIX = '/org/bluez'

ERROR_NOT_READY = 'org.bluez.Error.NotReady'
ERROR_FAILED = 'org.bluez.Error.Failed'
ERROR_IN_PROGRESS = 'org.bluez.Error.InProgress'
ERROR_ALREADY_CONNECTED = 'org.bluez.Error.AlreadyConnected'
ERROR_NOT_CONNECTED = 'org.bluez.Error.NotConnected'
ERROR_INVALID_ARGUMENTS = 'org.bluez.Error.InvalidArguments'
ERROR_NOT_AVAILABLE = 'org.bluez.Error.NotAvailable'
ERROR_NOT_SUPPORTED = 'org.bluez.Error.NotSupported'
ERROR_DOES_NOT_EXIST = 'org.bluez.Error.DoesNotExist'

ADDRESS_TYPES = ('public', 'random')

_ADDRESS_RE = re.compile(r'^[0-9A-Fa-f]{2}(:[0-9A-Fa-f]{2}){5}$')
_ADAPTER_RE = re.compile(r'^hci[0-9]+$')
_DEVICE_PATH_RE = re.compile(r'^(?P<prefix>(/[A-Za-z0-9_]+)*)/(?P<adapter>hci[0-9]+)'
                             r'/dev_(?P<address>[0-9A-F]{2}(_[0-9A-F]{2}){5})$')


def device_path(adapter: str, address: str, prefix: str = DEFAULT_PREFIX) -> str:
    """
    Build the object path of a device

    :param adapter: Adapter name, e.g. hci0
    :param address: Device address, e.g. AA:BB:CC:DD:EE:FF
    :param prefix: Path of the adapters' parent object

    :return: e.g. /org/bluez/hci0/dev_AA_BB_CC_DD_EE_FF
    """
    if _ADAPTER_RE.match(adapter) is None:
        raise ValueError('Invalid adapter name: %s' % adapter)
    if _ADDRESS_RE.match(address) is None:
        raise ValueError('Invalid device address: %s' % address)

    return '%s/%s/dev_%s' % (prefix.rstrip('/'), adapter, address.upper().replace(':', '_'))


def parse_device_path(path: str) -> tuple:
    """
    Split a device object path into (prefix, adapter, address)
    """
    match = _DEVICE_PATH_RE.match(path)
    if match is None:
        raise ValueError('Not a device path: %s' % path)

    return (match.group('prefix') or '/', match.group('adapter'),
            match.group('address').replace('_', ':'))


def address_from_path(path: str) -> str:
    """
    Get the device address from a device object path
    """
    return parse_device_path(path)[2]


class Device1Properties(PropertyRecord):
    """
    Properties of org.bluez.Device1
    """
    Appearance = UInt16()
    UUIDs = StringList()
    Connected = Boolean()
    RSSI = Int16()
    ServicesResolved = Boolean()
    AdvertisingFlags = ByteArray()
    Alias = String()
    AdvertisingData = VariantDict('s')
    ManufacturerData = VariantDict('q')
    ServiceData = VariantDict('s')
    Address = String()
    Icon = String()
    Class = UInt32()
    Trusted = Boolean()
    Blocked = Boolean()
    TxPower = Int16()
    AddressType = StringEnum(ADDRESS_TYPES, default_value='public')
    Name = String()
    Paired = Boolean()
    Adapter = ObjectPath()
    LegacyPairing = Boolean()
    Modalias = String()


class Device1(InterfaceBinding):
    """
    A remote Bluetooth device
    """
    SERVICE = SERVICE
    INTERFACE = DEVICE_INTERFACE
    PROPERTIES = Device1Properties

    Connect = BusMethod(doc="""
        Connect all profiles the remote device supports that can be
        connected to and have been flagged as auto-connectable.

        Possible errors: NotReady, Failed, InProgress, AlreadyConnected
        """)

    Disconnect = BusMethod(doc="""
        Gracefully disconnect all connected profiles and then
        terminate the low-level connection.

        Possible errors: NotConnected
        """)

    ConnectProfile = BusMethod('s', doc="""
        Connect a specific profile of this device, given its UUID.

        Possible errors: Failed, InProgress, InvalidArguments,
        NotAvailable, NotReady
        """)

    DisconnectProfile = BusMethod('s', doc="""
        Disconnect a specific profile of this device, given its UUID.

        Possible errors: Failed, InProgress, InvalidArguments,
        NotSupported
        """)

    Pair = BusMethod(doc="""
        Connect to the remote device and initiate pairing.

        Possible errors: InvalidArguments, Failed, AlreadyExists,
        AuthenticationCanceled, AuthenticationFailed,
        AuthenticationRejected, AuthenticationTimeout,
        ConnectionAttemptFailed
        """)

    CancelPairing = BusMethod(doc="""
        Cancel a pairing operation initiated by Pair().

        Possible errors: DoesNotExist, Failed
        """)


    @classmethod
    async def for_address(cls, adapter: str, address: str, prefix: str = DEFAULT_PREFIX,
                          bus=None, settings=None) -> 'Device1':
        """
        Bind to a device by adapter name and address
        """
        return await cls.create(device_path(adapter, address, prefix),
                                bus=bus, settings=settings)


    @property
    def address(self) -> str:
        return address_from_path(self.path)
