"""Cryptor Meta information.
   Cryptor stores text strings encrypted with a lazily generated RSA keypair.
"""
__title__ = 'cryptor'
__description__ = (
   'Cryptor stores text strings encrypted with a lazily generated '
   'RSA keypair and recovers them on demand.'
)
__version__ = '0.1.0'
__license__ = 'Apache-2.0'
