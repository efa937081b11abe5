#
# Copyright (C) 2026 bluebind Developers — LGPL-3.0-or-later
#
"""
Exceptions raised by bindings.

Transport problems, remote errors and decoding failures are kept
apart so callers can decide which ones are worth retrying.
"""


class BindingError(Exception):
    """
    Base class for all errors raised by bluebind
    """


class TransportError(BindingError):
    """
    The bus connection failed or a message could not be delivered
    """


class MarshallingError(TransportError):
    """
    A value does not match the signature it is sent with
    """


class BindingClosedError(TransportError):
    """
    The binding (or its client) was used after close()
    """


class DecodeError(BindingError):
    """
    A payload received from the bus does not match the declared type

    :param property_name: The offending property, if any
    :param message: Description of the mismatch
    """
    def __init__(self, property_name, message):
        super().__init__(message if property_name is None \
            else '%s: %s' % (property_name, message))
        self.property_name = property_name
        self.message = message


class RemoteError(BindingError):
    """
    An error reply from the remote service.

    The symbolic error name is kept verbatim in `name`. Use
    from_reply() to get the most specific subclass for a reply.
    """
    _REGISTRY = {}

    def __init__(self, name: str, message: str = '', reply=None):
        super().__init__('%s: %s' % (name, message) if message else name)
        self.name = name
        self.message = message
        self.reply = reply


    def __init_subclass__(cls, error_suffix=None, **kwargs):
        super().__init_subclass__(**kwargs)
        if error_suffix is not None:
            RemoteError._REGISTRY[error_suffix] = cls


    @classmethod
    def for_name(cls, name: str) -> type:
        """
        Get the exception class registered for an error name,
        matched on the last dotted segment.
        """
        return cls._REGISTRY.get(name.rsplit('.', 1)[-1], RemoteError)


    @classmethod
    def from_reply(cls, reply) -> 'RemoteError':
        """
        Build an exception from an ERROR message
        """
        message = ''
        if reply.body and isinstance(reply.body[0], str):
            message = reply.body[0]
        name = reply.error_name
        return cls.for_name(name)(name, message, reply=reply)


class NotReadyError(RemoteError, error_suffix='NotReady'):
    pass


class FailedError(RemoteError, error_suffix='Failed'):
    pass


class InProgressError(RemoteError, error_suffix='InProgress'):
    pass


class AlreadyConnectedError(RemoteError, error_suffix='AlreadyConnected'):
    pass


class NotConnectedError(RemoteError, error_suffix='NotConnected'):
    pass


class InvalidArgumentsError(RemoteError, error_suffix='InvalidArguments'):
    pass


class NotAvailableError(RemoteError, error_suffix='NotAvailable'):
    pass


class NotSupportedError(RemoteError, error_suffix='NotSupported'):
    pass


class DoesNotExistError(RemoteError, error_suffix='DoesNotExist'):
    pass


class ForbiddenError(RemoteError, error_suffix='Forbidden'):
    pass
