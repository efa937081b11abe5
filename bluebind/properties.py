#
# Copyright (C) 2026 bluebind Developers — LGPL-3.0-or-later
#

# pylint: disable=invalid-name, protected-access
"""
Typed mirrors of remote D-Bus properties

A PropertyRecord declares one trait per remote property. Each trait
type knows the D-Bus signature of the values it accepts, so a record
can decode a bag of Variants without reflection and reject payloads
of the wrong type.
"""
import copy
import re

from dbus_fast import Variant
from frozendict import frozendict
from traitlets import Bool, Bytes, CaselessStrEnum, Dict, HasTraits, Int, List, \
        TraitError, Unicode
from wrapt import synchronized

from bluebind.dbus_utils import make_variant
from bluebind.errors import DecodeError, MarshallingError
from bluebind.util import LOG_TRACE, get_logger


class BusTrait:
    """
    Mixin for traits which mirror a D-Bus property.

    Subclasses set the signature of the values they hold.
    """
    signature = None


class Byte(BusTrait, Int):
    """
    Unsigned 8-bit integer (y)
    """
    signature = 'y'

    def __init__(self, default_value=0, **kwargs):
        super().__init__(default_value, min=0, max=0xFF, **kwargs)


class UInt16(BusTrait, Int):
    """
    Unsigned 16-bit integer (q)
    """
    signature = 'q'

    def __init__(self, default_value=0, **kwargs):
        super().__init__(default_value, min=0, max=0xFFFF, **kwargs)


class UInt32(BusTrait, Int):
    """
    Unsigned 32-bit integer (u)
    """
    signature = 'u'

    def __init__(self, default_value=0, **kwargs):
        super().__init__(default_value, min=0, max=0xFFFFFFFF, **kwargs)


class Int16(BusTrait, Int):
    """
    Signed 16-bit integer (n)
    """
    signature = 'n'

    def __init__(self, default_value=0, **kwargs):
        super().__init__(default_value, min=-0x8000, max=0x7FFF, **kwargs)


class Boolean(BusTrait, Bool):
    """
    Boolean (b)
    """
    signature = 'b'

    def validate(self, obj, value):
        # ints are not accepted as booleans here
        if not isinstance(value, bool):
            self.error(obj, value)
        return value


class String(BusTrait, Unicode):
    """
    String (s)
    """
    signature = 's'

    def validate(self, obj, value):
        if not isinstance(value, str):
            self.error(obj, value)
        return value


class ObjectPath(BusTrait, Unicode):
    """
    Object path (o)
    """
    signature = 'o'
    info_text = 'a D-Bus object path'

    _PATH_RE = re.compile(r'^/([A-Za-z0-9_]+(/[A-Za-z0-9_]+)*)?$')

    def __init__(self, default_value='/', **kwargs):
        super().__init__(default_value, **kwargs)

    def validate(self, obj, value):
        if not isinstance(value, str) or self._PATH_RE.match(value) is None:
            self.error(obj, value)
        return value


class StringEnum(BusTrait, CaselessStrEnum):
    """
    String (s) restricted to a set of values
    """
    signature = 's'


class ByteArray(BusTrait, Bytes):
    """
    Ordered sequence of bytes (ay)
    """
    signature = 'ay'

    def __init__(self, default_value=b'', **kwargs):
        super().__init__(default_value, **kwargs)

    def validate(self, obj, value):
        if isinstance(value, bytearray):
            value = bytes(value)
        return super().validate(obj, value)


class StringList(BusTrait, List):
    """
    Array of strings (as)
    """
    signature = 'as'

    def __init__(self, default_value=(), **kwargs):
        super().__init__(trait=String(), default_value=default_value, **kwargs)


class VariantDict(BusTrait, Dict):
    """
    Dictionary of opaque Variants keyed by string (a{sv})
    or by unsigned 16-bit integer (a{qv})
    """
    info_text = 'a dict of variants'

    _KEY_CHECKS = {
        's': lambda k: isinstance(k, str),
        'q': lambda k: isinstance(k, int) and not isinstance(k, bool) and 0 <= k <= 0xFFFF,
    }

    def __init__(self, key_signature='s', **kwargs):
        if key_signature not in self._KEY_CHECKS:
            raise ValueError('Unsupported key signature: %s' % key_signature)
        super().__init__(**kwargs)
        self.key_signature = key_signature
        self.signature = 'a{%sv}' % key_signature

    def validate(self, obj, value):
        value = super().validate(obj, value)
        check = self._KEY_CHECKS[self.key_signature]
        for k, v in value.items():
            if not check(k) or not isinstance(v, Variant):
                self.error(obj, value)
        return value


class PropertyRecord(HasTraits):
    """
    Typed shadow of one remote object's properties

    Subclasses declare a BusTrait for every property of the
    remote interface, named exactly like the property.

    All mutation and snapshotting is synchronized on the
    record instance. lock() hands out the same lock for callers
    which need several reads to be consistent with each other.
    Trait observers fire while the lock is held.
    """

    _logger = get_logger('bluebind.properties')


    @classmethod
    def bus_traits(cls) -> dict:
        """
        Get the declared property traits, keyed by property name
        """
        return {name: trait for name, trait in cls.class_traits().items() \
                if isinstance(trait, BusTrait)}


    @classmethod
    def signature_of(cls, name: str):
        """
        Get the D-Bus signature of a property, None if unknown
        """
        trait = cls.bus_traits().get(name)
        if trait is None:
            return None
        return trait.signature


    def lock(self):
        """
        Scoped access to the record, for use with "with"
        """
        return synchronized(self)


    def decode(self, name: str, variant):
        """
        Decode a Variant for the named property without storing it

        :raises DecodeError: if the property is unknown or the
                             variant does not match its type
        """
        trait = self.bus_traits().get(name)
        if trait is None:
            raise DecodeError(name, 'unknown property')

        if not isinstance(variant, Variant):
            raise DecodeError(name, 'expected a Variant, got %r' % (variant,))

        if variant.signature != trait.signature:
            raise DecodeError(name, 'signature %r does not match declared %r' \
                % (variant.signature, trait.signature))

        try:
            return trait.validate(self, variant.value)
        except TraitError as err:
            raise DecodeError(name, str(err)) from err


    @synchronized
    def update_from_variant_map(self, props: dict):
        """
        Bulk update from a map of property name to Variant.

        Unknown keys are ignored. Every known key is decoded
        before anything is stored, so a decoding error leaves
        the record untouched.

        :raises DecodeError: on the first value which fails to decode
        """
        known = self.bus_traits()
        values = {}
        for name, variant in props.items():
            if name not in known:
                self._logger.debug('%s: ignoring unknown property %s',
                                   self.__class__.__name__, name)
                continue
            values[name] = self.decode(name, variant)

        with self.hold_trait_notifications():
            for name, value in values.items():
                setattr(self, name, value)

        return self


    @synchronized
    def apply_change(self, name: str, variant) -> bool:
        """
        Apply a single property change.

        Unknown properties and values which do not decode are
        dropped and the previous value is kept.

        :return: True if the value was stored
        """
        try:
            value = self.decode(name, variant)
        except DecodeError as err:
            self._logger.warning('%s: dropping change: %s', self.__class__.__name__, err)
            return False

        self._logger.log(LOG_TRACE, '%s: %s -> %r', self.__class__.__name__, name, value)
        setattr(self, name, value)
        return True


    @synchronized
    def to_map(self) -> frozendict:
        """
        Snapshot of all properties as a name -> value mapping
        """
        return frozendict({name: copy.copy(getattr(self, name)) \
                for name in self.bus_traits()})


    @synchronized
    def to_variant_map(self) -> dict:
        """
        Serialize all properties to Variants with their declared
        signatures
        """
        return {name: make_variant(trait.signature, copy.copy(getattr(self, name))) \
                for name, trait in self.bus_traits().items()}


    @classmethod
    def from_variant_map(cls, props: dict) -> 'PropertyRecord':
        """
        Create a new record from a map of property name to Variant

        :raises DecodeError: if a known property fails to decode
        """
        return cls().update_from_variant_map(props)


    @classmethod
    def from_map(cls, props: dict) -> 'PropertyRecord':
        """
        Create a new record from plain Python values, which are
        checked against the declared signatures
        """
        known = cls.bus_traits()
        variants = {}
        for name, value in props.items():
            if name not in known:
                continue
            if isinstance(value, Variant):
                variants[name] = value
                continue
            try:
                variants[name] = make_variant(known[name].signature, value)
            except MarshallingError as err:
                raise DecodeError(name, str(err)) from err

        return cls.from_variant_map(variants)


    def __repr__(self):
        values = ', '.join('%s=%r' % (k, v) for k, v in sorted(self.to_map().items()))
        return '%s(%s)' % (self.__class__.__name__, values)
