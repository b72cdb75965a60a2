"""PSVault Meta information.
   PSVault recovers secrets exported by PowerShell ConvertFrom-SecureString
   from a CLIXML credential store.
"""
__title__ = 'psvault'
__description__ = (
   'Read-only decoder for PowerShell secure-string credentials '
   'stored in CLIXML hashtables.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2024 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/psvault'
