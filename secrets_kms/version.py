"""Secrets KMS Meta information.
   Secrets KMS keeps versioned secret key material on the local filesystem.
"""
__title__ = 'secrets_kms'
__description__ = (
   'Secrets KMS keeps versioned secret key material on the local '
   'filesystem behind trusted-class gates.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2024 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
