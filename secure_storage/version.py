"""Secure Storage Meta information.
   Secure Storage keeps integration credentials encrypted at rest.
"""
__title__ = 'secure_storage'
__description__ = (
   'Secure Storage keeps OAuth tokens, API keys and session secrets '
   'of integration providers encrypted at rest.'
)
__version__ = '1.0.0'
__copyright__ = 'Copyright (c) 2024 Secure Storage Contributors'
__author__ = 'Secure Storage Contributors'
__author_email__ = 'maintainers@secure-storage.invalid'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/secure-storage/secure-storage'
