from .device import Device1, Device1Properties, address_from_path, device_path, \
        parse_device_path
from .obex import PhonebookAccess1, PhonebookAccess1Properties, PhonebookFilter
