#
# Copyright (C) 2026 bluebind Developers — LGPL-3.0-or-later
#

# pylint: disable=invalid-name
"""
Helpers for converting between Python values and D-Bus payloads
"""
import enum

from dbus_fast import Variant
from dbus_fast.errors import InvalidSignatureError, SignatureBodyMismatchError
from dbus_fast.signature import get_signature_tree
from frozendict import frozendict

from bluebind.errors import MarshallingError
from bluebind.util import get_logger, snake_to_camel


DBUS_SERVICE = 'org.freedesktop.DBus'
DBUS_PATH = '/org/freedesktop/DBus'
PROPERTIES_INTERFACE = 'org.freedesktop.DBus.Properties'
OBJECT_MANAGER_INTERFACE = 'org.freedesktop.DBus.ObjectManager'

PROPERTIES_CHANGED = 'PropertiesChanged'
INTERFACES_ADDED = 'InterfacesAdded'
INTERFACES_REMOVED = 'InterfacesRemoved'

INT32_MIN = -0x80000000
INT32_MAX = 0x7FFFFFFF

logger = get_logger('bluebind.dbus_utils')


def dbus_prepare(obj, variant: bool=False, camel_keys: bool=False) -> tuple:
    """
    Recursively walks obj and builds a D-Bus signature
    by inspecting types. Variant types are created as
    necessary, and the returned obj may have changed.

    Existing Variants are passed through untouched.

    :param obj: An arbitrary primitive or container type
    :param variant: Force wrapping contained objects with variants
    :param camel_keys: Convert dict keys to CamelCase
    """
    sig = ''

    try:
        if isinstance(obj, Variant):
            sig = 'v'

        elif isinstance(obj, bool):
            sig = 'b'

        elif isinstance(obj, enum.Enum):
            obj = obj.name
            sig = 's'

        elif isinstance(obj, str):
            sig = 's'

        elif isinstance(obj, int):
            if INT32_MIN <= obj <= INT32_MAX:
                sig = 'i'
            else:
                sig = 'x'

        elif isinstance(obj, float):
            sig = 'd'

        elif isinstance(obj, (bytes, bytearray)):
            obj = bytes(obj)
            sig = 'ay'

        elif isinstance(obj, list):
            items = [x for x in obj if x is not None]
            if len(items) == 0:
                obj, sig = [], 'av'
            else:
                prepared = [dbus_prepare(item) for item in items]
                sigs = set(r_sig for _, r_sig in prepared)
                if not variant and len(sigs) == 1:
                    # all items same type
                    obj = [r_obj for r_obj, _ in prepared]
                    sig = 'a' + sigs.pop()
                else:
                    # wrap items with variants
                    obj = [_wrap(r_obj, r_sig) for r_obj, r_sig in prepared]
                    sig = 'av'

        elif isinstance(obj, (dict, frozendict)):
            items = {(snake_to_camel(k) if camel_keys else k): v \
                        for k, v in obj.items() if v is not None}
            prepared = {k: dbus_prepare(v) for k, v in items.items()}
            sigs = set(r_sig for _, r_sig in prepared.values())

            if len(prepared) > 0 and not variant and len(sigs) == 1:
                # all values same type
                obj = {k: r_obj for k, (r_obj, _) in prepared.items()}
                sig = 'a{s%s}' % sigs.pop()
            else:
                # wrap values with variants
                obj = {k: _wrap(r_obj, r_sig) for k, (r_obj, r_sig) in prepared.items()}
                sig = 'a{sv}'

        else:
            raise MarshallingError('No D-Bus type for %r' % (obj,))

    except MarshallingError:
        raise

    except Exception as err:
        logger.exception('obj: %s  sig: %s', obj, sig, exc_info=err)
        raise

    return obj, sig


def _wrap(obj, sig):
    if sig == 'v':
        return obj
    return make_variant(sig, obj)


def to_variant_dict(obj) -> dict:
    """
    Convert a mapping (or anything with to_variant_map()) to
    an a{sv} payload. Variants already present are kept.
    """
    if obj is None:
        return {}
    if hasattr(obj, 'to_variant_map'):
        return dict(obj.to_variant_map())
    if not isinstance(obj, (dict, frozendict)):
        raise MarshallingError('Expected a mapping for a{sv}, got %r' % (obj,))
    return dbus_prepare(obj, variant=True)[0]


def unwrap_variants(obj):
    """
    Recursively unwrap dbus_fast Variants.
    """
    if isinstance(obj, Variant):
        return unwrap_variants(obj.value)
    if isinstance(obj, dict):
        return {k: unwrap_variants(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return type(obj)(unwrap_variants(item) for item in obj)
    return obj


def split_signature(signature: str) -> list:
    """
    Split a signature into its complete types, one per argument

    :param signature: A D-Bus signature such as 'sa{sv}'
    :return: List of single complete type signatures
    """
    try:
        return [t.signature for t in get_signature_tree(signature).types]
    except InvalidSignatureError as err:
        raise MarshallingError('Invalid signature %r: %s' % (signature, err)) from err


def verify_body(signature: str, body) -> None:
    """
    Check a message body against a signature before sending it

    :raises MarshallingError: if the body does not match
    """
    try:
        get_signature_tree(signature).verify(list(body))
    except (InvalidSignatureError, SignatureBodyMismatchError) as err:
        raise MarshallingError('Body %r does not match signature %r: %s' \
            % (body, signature, err)) from err


def make_variant(signature: str, value) -> Variant:
    """
    Create a Variant, raising MarshallingError on a mismatch
    """
    try:
        return Variant(signature, value)
    except (InvalidSignatureError, SignatureBodyMismatchError) as err:
        raise MarshallingError('Value %r does not match signature %r: %s' \
            % (value, signature, err)) from err


def match_rule(**criteria) -> str:
    """
    Build a bus match rule for AddMatch / RemoveMatch

    Criteria which are None are left out. The signal type is
    implied unless given.
    """
    criteria.setdefault('type', 'signal')
    order = ['type', 'sender', 'interface', 'member', 'path', 'path_namespace']
    keys = sorted(criteria.keys(), key=lambda k: order.index(k) if k in order else len(order))
    return ','.join("%s='%s'" % (k, criteria[k]) for k in keys if criteria[k] is not None)
