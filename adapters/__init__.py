"""
Adapters package - External service connections.
Stripe payments, OpenAI recipe generation, Mailgun email and media storage.
"""

from adapters import mail_adapter, openai_adapter, storage_adapter, stripe_adapter

__all__ = [
    "mail_adapter",
    "openai_adapter",
    "storage_adapter",
    "stripe_adapter",
]
