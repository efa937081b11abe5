import os
import re

from setuptools import setup


def get_version():
    module_init = 'bluebind/version.py'

    if not os.path.isfile(module_init):
        module_init = '../' + module_init
        if not os.path.isfile(module_init):
            raise ValueError('Unable to determine version!')

    return re.search(r'__version__\s*=\s*[\'"]([^\'"]*)[\'"]',
                     open(module_init).read()).group(1)


setup(name='bluebind',
      version=get_version(),
      description='Asyncio bindings for BlueZ D-Bus interfaces',
      url='https://github.com/bluebind/bluebind',
      author='bluebind Developers',
      license='LGPL',
      platforms='Linux',
      packages=['bluebind', 'bluebind.profile'],
      python_requires='>=3.9',
      install_requires=['colorlog', 'dbus-fast', 'frozendict', 'ruamel.yaml',
                        'traitlets', 'wrapt'],
      extras_require={
          'test': ['pytest'],
      },
      keywords='bluez bluetooth dbus obex pbap asyncio',
      include_package_data=True,
      zip_safe=False,
      classifiers=[
          'Development Status :: 3 - Alpha',
          'Framework :: AsyncIO',
          'Intended Audience :: Developers',
          'License :: OSI Approved :: GNU Lesser General Public License v3 (LGPLv3)',
          'Operating System :: POSIX :: Linux',
          'Programming Language :: Python :: 3 :: Only',
          'Topic :: System :: Networking'
      ])
