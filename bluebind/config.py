#
# Copyright (C) 2026 bluebind Developers — LGPL-3.0-or-later
#

# pylint: disable=no-member, invalid-name
"""
Runtime settings

Settings are plain traits which may be loaded from and saved to
YAML. The file named by $BLUEBIND_CONFIG is used if set, otherwise
~/.config/bluebind/bluebind.yaml if it exists.
"""
import io
import os
import tempfile

from dbus_fast import BusType
from ruamel.yaml import YAML
from traitlets import CaselessStrEnum, HasTraits, Int, TraitError, Unicode

from bluebind.util import get_logger, set_log_level


CONFDIR = os.path.join(os.path.expanduser('~'), '.config', 'bluebind')
CONFFILE = os.path.join(CONFDIR, 'bluebind.yaml')
CONFIG_ENV = 'BLUEBIND_CONFIG'

OBEX_SERVICE = 'org.bluez.obex'

BUS_TYPES = {
    'system': BusType.SYSTEM,
    'session': BusType.SESSION,
}


class Settings(HasTraits):
    """
    Settings shared by all bindings created without explicit
    overrides.
    """
    bus = CaselessStrEnum(tuple(BUS_TYPES.keys()), default_value='system',
                          help='Bus used for org.bluez')
    obex_bus = CaselessStrEnum(tuple(BUS_TYPES.keys()), default_value='system',
                               help='Bus used for org.bluez.obex')
    watch_queue_size = Int(1, min=0,
                           help='Bound of the property change event channel, 0 is unbounded')
    log_level = Unicode('WARNING', help='Level applied to bluebind loggers')

    _logger = get_logger('bluebind.config')


    def bus_type_for(self, service: str) -> BusType:
        """
        Get the configured bus type for a service name
        """
        if service == OBEX_SERVICE or service.startswith(OBEX_SERVICE + '.'):
            return BUS_TYPES[self.obex_bus]
        return BUS_TYPES[self.bus]


    def apply(self):
        """
        Apply process-wide settings (log level)
        """
        set_log_level(self.log_level)


    def asdict(self) -> dict:
        """
        Current values keyed by setting name
        """
        return {name: getattr(self, name) for name in sorted(self.trait_names())}


    @classmethod
    def from_dict(cls, values: dict) -> 'Settings':
        """
        Create settings from a dict. Unknown keys are ignored.

        :raises ValueError: if a value is not valid for its setting
        """
        known = set(cls.class_trait_names())
        kwargs = {}
        for key, value in (values or {}).items():
            if key not in known:
                cls._logger.warning('Ignoring unknown setting: %s', key)
                continue
            kwargs[key] = value

        try:
            return cls(**kwargs)
        except TraitError as err:
            raise ValueError('Invalid settings: %s' % err) from err


    @classmethod
    def load_yaml(cls, filename: str) -> 'Settings':
        """
        Load settings from a YAML file
        """
        with open(filename, 'r') as yaml_file:
            data = YAML(typ='rt').load(yaml_file)

        if data is not None and not isinstance(data, dict):
            raise ValueError('%s: expected a mapping of settings' % filename)

        return cls.from_dict(dict(data or {}))


    @classmethod
    def load(cls) -> 'Settings':
        """
        Load settings from the default location, or use defaults
        """
        filename = os.environ.get(CONFIG_ENV)
        if filename is None and os.path.isfile(CONFFILE):
            filename = CONFFILE

        if filename is None:
            return cls()

        cls._logger.debug('Loading settings from %s', filename)
        return cls.load_yaml(filename)


    @property
    def yaml(self) -> str:
        """
        Get the YAML representation of these settings
        """
        stream = io.StringIO()
        YAML(typ='rt').dump(self.asdict(), stream)
        return stream.getvalue()


    def save_yaml(self, filename: str = None):
        """
        Serialize settings to a YAML file, replacing it atomically
        """
        if filename is None:
            filename = CONFFILE

        dirname = os.path.dirname(os.path.abspath(filename))
        os.makedirs(dirname, exist_ok=True)

        with tempfile.NamedTemporaryFile('w', dir=dirname, delete=False) as temp:
            temp.write('#\n#  bluebind settings\n#\n')
            temp.write(self.yaml)

        os.replace(temp.name, filename)
