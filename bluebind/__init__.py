from .binding import BusMethod, InterfaceBinding
from .channel import Channel
from .client import BusClient, SignalEnvelope, connect_bus, disconnect_buses
from .config import Settings
from .errors import BindingClosedError, BindingError, DecodeError, MarshallingError, \
        RemoteError, TransportError
from .object_manager import ObjectManagerObserver
from .properties import PropertyRecord
from .watcher import PropertyChangeEvent, PropertyWatcher, WatchState
from .version import __version__
