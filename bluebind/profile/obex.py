#
# Copyright (C) 2026 bluebind Developers — LGPL-3.0-or-later
#

# pylint: disable=invalid-name
"""
org.bluez.obex.PhonebookAccess1

Phonebook access objects live under an OBEX session path, e.g.
/org/bluez/obex/client/session0.
"""
from dbus_fast import Variant
from traitlets import HasTraits, TraitError

from bluebind.binding import BusMethod, InterfaceBinding
from bluebind.dbus_utils import make_variant, unwrap_variants
from bluebind.properties import Boolean, String, StringEnum, StringList, PropertyRecord, \
        UInt16
from bluebind.util import camel_to_snake, snake_to_camel


SERVICE = 'org.bluez.obex'
PHONEBOOK_ACCESS_INTERFACE = 'org.bluez.obex.PhonebookAccess1'

ERROR_INVALID_ARGUMENTS = 'org.bluez.obex.Error.InvalidArguments'
ERROR_FORBIDDEN = 'org.bluez.obex.Error.Forbidden'
ERROR_FAILED = 'org.bluez.obex.Error.Failed'
ERROR_NOT_SUPPORTED = 'org.bluez.obex.Error.NotSupported'

# Select() locations, "sim1", "sim2".. are also accepted by the remote
LOCATION_INTERNAL = 'int'
LOCATION_SIM = 'sim'
LOCATION_SIM2 = 'sim2'

PHONEBOOK = 'pb'
INCOMING_CALLS = 'ich'
OUTGOING_CALLS = 'och'
MISSED_CALLS = 'mch'
COMBINED_CALLS = 'cch'
SPEED_DIAL = 'spd'
FAVORITES = 'fav'

PHONEBOOKS = (PHONEBOOK, INCOMING_CALLS, OUTGOING_CALLS, MISSED_CALLS,
              COMBINED_CALLS, SPEED_DIAL, FAVORITES)
INTERNAL_ONLY_PHONEBOOKS = (SPEED_DIAL, FAVORITES)
CALL_HISTORY_PHONEBOOKS = (MISSED_CALLS, COMBINED_CALLS)

SEARCH_FIELDS = ('name', 'number', 'sound')
FORMATS = ('vcard21', 'vcard30')
ORDERS = ('indexed', 'alphanumeric', 'phonetic')

DEFAULT_MAX_COUNT = 0xFFFF


class PhonebookFilter(HasTraits):
    """
    Filters for PullAll, Pull and Search

    Only the fields which were set are sent, the remote applies
    its own defaults to the rest::

        PhonebookFilter(format='vcard30', max_count=50, fields=['N', 'TEL'])
    """
    format = StringEnum(FORMATS, default_value=None, allow_none=True)
    order = StringEnum(ORDERS, default_value=None, allow_none=True)
    offset = UInt16(default_value=None, allow_none=True)
    max_count = UInt16(default_value=None, allow_none=True)
    fields = StringList(default_value=None, allow_none=True)
    filter_all = StringList(default_value=None, allow_none=True)
    filter_any = StringList(default_value=None, allow_none=True)
    reset_new_missed_calls = Boolean(default_value=None, allow_none=True)


    @classmethod
    def from_dict(cls, values: dict) -> 'PhonebookFilter':
        """
        Create a filter from a dict keyed by filter name, either as
        sent on the bus ('MaxCount') or as attribute ('max_count').
        Variant values are unwrapped and checked like plain ones.

        :raises ValueError: on unknown names or invalid values
        """
        known = set(cls.class_trait_names())
        kwargs = {}
        for key, value in values.items():
            name = camel_to_snake(key)
            if name not in known:
                raise ValueError('Unknown phonebook filter: %s' % key)
            if isinstance(value, Variant):
                value = value.value
            kwargs[name] = value

        try:
            return cls(**kwargs)
        except TraitError as err:
            raise ValueError('Invalid phonebook filter: %s' % err) from err


    def validate_for(self, phonebook: str = None):
        """
        Check the filter, and that it applies to the selected phonebook

        :raises ValueError: if fields conflict or do not apply
        """
        if self.filter_all is not None and self.filter_any is not None:
            raise ValueError('FilterAll and FilterAny are mutually exclusive')

        if self.reset_new_missed_calls is not None \
                and phonebook not in CALL_HISTORY_PHONEBOOKS:
            raise ValueError('ResetNewMissedCalls only applies to %s, not %s' \
                % ('/'.join(CALL_HISTORY_PHONEBOOKS), phonebook))


    def to_variant_map(self) -> dict:
        """
        Serialize the fields which were set to an a{sv} map
        """
        if self.filter_all is not None and self.filter_any is not None:
            raise ValueError('FilterAll and FilterAny are mutually exclusive')

        result = {}
        for name, trait in sorted(self.traits().items()):
            value = getattr(self, name)
            if value is not None:
                result[snake_to_camel(name)] = make_variant(trait.signature, value)
        return result


class PhonebookAccess1Properties(PropertyRecord):
    """
    Properties of org.bluez.obex.PhonebookAccess1
    """
    FixedImageSize = Boolean()
    Folder = String()
    DatabaseIdentifier = String()
    PrimaryCounter = String()
    SecondaryCounter = String()


class PhonebookAccess1(InterfaceBinding):
    """
    Phonebook access on an OBEX session
    """
    SERVICE = SERVICE
    INTERFACE = PHONEBOOK_ACCESS_INTERFACE
    PROPERTIES = PhonebookAccess1Properties

    _Select = BusMethod('ss', name='Select')
    _PullAll = BusMethod('sa{sv}', 'oa{sv}', name='PullAll')
    _Pull = BusMethod('ssa{sv}', None, name='Pull')
    _Search = BusMethod('ssa{sv}', None, name='Search')

    GetSize = BusMethod('', 'q', doc="""
        Number of entries in the selected phonebook.

        Possible errors: org.bluez.obex.Error.Forbidden,
        org.bluez.obex.Error.Failed
        """)

    UpdateVersion = BusMethod(doc="""
        Attempt to update PrimaryCounter and SecondaryCounter.

        Possible errors: org.bluez.obex.Error.NotSupported,
        org.bluez.obex.Error.Failed
        """)

    ListFilterFields = BusMethod('', 'as', doc="""
        All vcard fields supported by the remote.

        Possible errors: None
        """)


    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._selected = None


    @property
    def selected(self) -> tuple:
        """
        (location, phonebook) of the last successful Select, or None
        """
        return self._selected


    def _filters(self, filters) -> PhonebookFilter:
        if filters is None:
            filters = PhonebookFilter()
        elif not isinstance(filters, PhonebookFilter):
            filters = PhonebookFilter.from_dict(filters)

        filters.validate_for(self._selected[1] if self._selected else None)
        return filters


    async def Select(self, location: str, phonebook: str):
        """
        Select the phonebook object for the other operations.

        location is "int", "sim", "sim1", "sim2".. and phonebook one
        of "pb", "ich", "och", "mch", "cch", "spd" or "fav". "spd"
        and "fav" only exist in internal memory.

        Possible errors: org.bluez.obex.Error.InvalidArguments,
        org.bluez.obex.Error.Failed
        """
        await self._Select(location, phonebook)
        self._selected = (location, phonebook)
        self._logger.debug('Selected %s/%s', location, phonebook)


    async def PullAll(self, targetfile: str, filters=None) -> tuple:
        """
        Retrieve the entire phonebook into a local file. A temporary
        file is used if targetfile is empty.

        :return: (transfer object path, transfer properties)

        Possible errors: org.bluez.obex.Error.InvalidArguments,
        org.bluez.obex.Error.Forbidden
        """
        path, props = await self._PullAll(targetfile, self._filters(filters))
        return path, unwrap_variants(props)


    async def Pull(self, vcard: str, targetfile: str, filters=None):
        """
        Retrieve one vcard of the selected phonebook into a local file.

        Possible filters: Format and Fields

        Possible errors: org.bluez.obex.Error.InvalidArguments,
        org.bluez.obex.Error.Forbidden, org.bluez.obex.Error.Failed
        """
        return await self._Pull(vcard, targetfile, self._filters(filters))


    async def Search(self, field: str, value: str, filters=None):
        """
        Search for entries matching value in field, which is one of
        "name", "number" or "sound".

        Possible filters: Order, Offset and MaxCount

        Possible errors: org.bluez.obex.Error.InvalidArguments,
        org.bluez.obex.Error.Forbidden, org.bluez.obex.Error.Failed
        """
        return await self._Search(field, value, self._filters(filters))
