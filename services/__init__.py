"""
Service layer for AWS operations and external API calls.

This module provides thin wrappers over AWS services and external APIs,
separating handler logic from infrastructure concerns.
"""
from services.channel_service import ChannelService
from services.crypto_service import CryptoService
from services.database_service import DatabaseService
from services.email_service import EmailService
from services.identity_service import IdentityService
from services.message_service import MessageService
from services.notification_service import NotificationService
from services.secret_service import SecretService
from services.storage_service import StorageService
from services.tickettailor_service import TicketTailorService
from services.whatsapp_service import WhatsAppService

__all__ = [
    'ChannelService',
    'CryptoService',
    'DatabaseService',
    'EmailService',
    'IdentityService',
    'MessageService',
    'NotificationService',
    'SecretService',
    'StorageService',
    'TicketTailorService',
    'WhatsAppService',
]
