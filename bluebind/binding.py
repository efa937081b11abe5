#
# Copyright (C) 2026 bluebind Developers — LGPL-3.0-or-later
#

# pylint: disable=invalid-name, protected-access
"""
Bindings for remote D-Bus interfaces

An interface is bound by subclassing InterfaceBinding with the
service and interface names, a PropertyRecord subclass describing the
properties, and a BusMethod for each method::

    class Device1(InterfaceBinding):
        SERVICE = 'org.bluez'
        INTERFACE = 'org.bluez.Device1'
        PROPERTIES = Device1Properties

        Connect = BusMethod()
        ConnectProfile = BusMethod('s')

Get<Name>/Set<Name> accessors are generated for every declared
property when the subclass is created.
"""
from dbus_fast import Variant

from bluebind.client import BusClient, connect_bus
from bluebind.config import Settings
from bluebind.dbus_utils import make_variant, split_signature, to_variant_dict
from bluebind.errors import BindingError, DecodeError, MarshallingError
from bluebind.object_manager import ObjectManagerObserver
from bluebind.util import camel_to_snake, get_logger
from bluebind.watcher import PropertyWatcher, WatchState


class BusMethod:
    """
    Declares a method of the remote interface.

    The attribute name is used as the method name unless one
    is given. Arguments are checked against in_signature before
    anything is sent; a{sv} arguments may also be plain dicts or
    objects with a to_variant_map() method. The reply is checked
    against out_signature unless it is None.

    The coroutine returns None, the single value, or a tuple,
    depending on the number of values in the reply.
    """

    def __init__(self, in_signature: str = '', out_signature: str = '',
                 name: str = None, doc: str = None):
        self.in_signature = in_signature
        self.out_signature = out_signature
        self.name = name
        self.__doc__ = doc
        self._arg_signatures = split_signature(in_signature)


    def __set_name__(self, owner, name):
        if self.name is None:
            self.name = name


    def __get__(self, obj, objtype=None):
        if obj is None:
            return self

        async def _method(*args):
            return await self.invoke(obj, *args)

        _method.__name__ = self.name
        _method.__qualname__ = '%s.%s' % (type(obj).__name__, self.name)
        _method.__doc__ = self.__doc__
        return _method


    def prepare_args(self, args) -> list:
        """
        Convert call arguments to what their signatures need
        """
        if len(args) != len(self._arg_signatures):
            raise TypeError('%s() takes %d arguments (%d given)' \
                % (self.name, len(self._arg_signatures), len(args)))

        return [to_variant_dict(arg) if sig == 'a{sv}' else arg \
                for sig, arg in zip(self._arg_signatures, args)]


    async def invoke(self, binding, *args):
        body = await binding.client.call(self.name, self.in_signature,
                                         *self.prepare_args(args),
                                         out_signature=self.out_signature)
        if len(body) == 0:
            return None
        if len(body) == 1:
            return body[0]
        return tuple(body)


    def __repr__(self):
        return 'BusMethod(%s(%s) -> (%s))' % (self.name, self.in_signature,
                                             self.out_signature or '')


def _make_getter(name: str):
    async def getter(self):
        variant = await self.get_property(name)
        return self._properties.decode(name, variant)

    getter.__name__ = 'Get%s' % name
    getter.__doc__ = 'Fetch %s from the remote object' % name
    return getter


def _make_setter(name: str):
    async def setter(self, value):
        await self.set_property(name, value)

    setter.__name__ = 'Set%s' % name
    setter.__doc__ = 'Store %s on the remote object' % name
    return setter


class InterfaceBinding:
    """
    Live handle for one interface of one remote object

    Use create() to get an instance with its properties fetched.
    The bus connection is shared with other bindings and is not
    closed by close().
    """
    SERVICE = None
    INTERFACE = None
    PROPERTIES = None


    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)

        if cls.PROPERTIES is None:
            return

        for name in cls.PROPERTIES.bus_traits():
            if not hasattr(cls, 'Get%s' % name):
                setattr(cls, 'Get%s' % name, _make_getter(name))
            if not hasattr(cls, 'Set%s' % name):
                setattr(cls, 'Set%s' % name, _make_setter(name))


    def __init__(self, bus, path: str, settings: Settings = None):
        if self.SERVICE is None or self.INTERFACE is None or self.PROPERTIES is None:
            raise TypeError('%s does not describe an interface' % type(self).__name__)

        if settings is None:
            settings = Settings()

        self._settings = settings
        self._client = BusClient(bus, self.SERVICE, self.INTERFACE, path)
        self._properties = self.PROPERTIES()
        self._watcher = None
        self._object_manager = ObjectManagerObserver(self._client)

        self._logger = get_logger('bluebind.%s' % camel_to_snake(type(self).__name__))


    @classmethod
    async def create(cls, path: str, bus=None, settings: Settings = None):
        """
        Bind to the object at path and fetch its properties

        :param path: Object path
        :param bus: Connected MessageBus, the shared one if None
        :param settings: Settings, loaded from the config file if None

        :raises DecodeError: if a property does not match its type
        """
        if settings is None:
            settings = Settings.load()
            settings.apply()

        if bus is None:
            bus = await connect_bus(settings.bus_type_for(cls.SERVICE))

        binding = cls(bus, path, settings)
        try:
            await binding.get_properties()
        except BindingError:
            await binding.close()
            raise

        return binding


    @property
    def client(self) -> BusClient:
        return self._client


    @property
    def path(self) -> str:
        return self._client.path


    @property
    def interface(self) -> str:
        return self._client.interface


    @property
    def properties(self):
        """
        The local mirror of the remote properties
        """
        return self._properties


    @property
    def closed(self) -> bool:
        return self._client.closed


    async def get_properties(self):
        """
        Refresh every property from the remote object

        :return: Snapshot of the refreshed properties
        """
        await self._client.get_all_properties(self._properties)
        return self._properties.to_map()


    async def get_property(self, name: str):
        """
        Fetch one property from the remote object

        :return: The Variant as returned by the remote
        """
        return await self._client.get_property(name)


    async def set_property(self, name: str, value):
        """
        Store one property on the remote object.

        Known properties are sent with their declared signature and
        checked first. The local mirror is left alone; it changes when
        the remote announces the new value.
        """
        signature = self.PROPERTIES.signature_of(name)
        if signature is None:
            await self._client.set_property(name, value)
            return

        if not isinstance(value, Variant):
            value = make_variant(signature, value)

        try:
            value = self._properties.decode(name, value)
        except DecodeError as err:
            raise MarshallingError(str(err)) from err

        await self._client.set_property(name, value, signature)


    async def watch_properties(self):
        """
        Start mirroring property changes

        :return: Channel of PropertyChangeEvent
        """
        if self._watcher is None or self._watcher.state in (WatchState.STOPPING,
                                                            WatchState.CLOSED):
            self._watcher = PropertyWatcher(self._client, self._properties,
                                            self._settings.watch_queue_size)

        return await self._watcher.watch()


    async def unwatch_properties(self, channel=None):
        """
        Stop mirroring property changes and close the channel
        """
        if self._watcher is not None:
            await self._watcher.unwatch(channel)


    async def get_object_manager_signal(self):
        """
        Subscribe to objects being added and removed under the service

        :return: (channel of SignalEnvelope, cancel coroutine function)
        """
        return await self._object_manager.subscribe()


    async def get_managed_objects(self) -> dict:
        return await self._object_manager.get_managed_objects()


    async def close(self):
        """
        Stop watching, release subscriptions and the bus reference.
        Safe to call more than once.
        """
        if self._client.closed:
            return

        await self.unwatch_properties()
        await self._object_manager.cancel()
        await self._client.close()
        self._logger.debug('Closed %s on %s', self.INTERFACE, self.path)


    async def __aenter__(self):
        return self


    async def __aexit__(self, exc_type, exc_value, traceback):
        await self.close()


    def __repr__(self):
        return '%s(%r)' % (type(self).__name__, self.path)
