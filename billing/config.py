import os
import re
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict


URL_PATTERN = re.compile(
    r'^https?://'  # http:// or https://
    r'(?:(?:[A-Z0-9](?:[A-Z0-9-]{0,61}[A-Z0-9])?\.)+[A-Z]{2,6}\.?|'  # domain...
    r'localhost|'  # localhost...
    r'\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})'  # ...or ip
    r'(?::\d+)?'  # optional port
    r'(?:/?|[/?]\S+)$', re.IGNORECASE)


class Settings(BaseModel):
    """Read-only server configuration, built once at startup"""

    model_config = ConfigDict(frozen=True)

    static_dir: Optional[str] = None
    domain: str = 'http://localhost:4242'
    stripe_secret_key: str = ''
    stripe_publishable_key: Optional[str] = None
    basic_price_id: Optional[str] = None
    pro_price_id: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    client_reference_id: str = 'blackjackptit'

    @classmethod
    def from_env(cls) -> 'Settings':
        load_dotenv()

        return cls(
            static_dir=os.getenv('STATIC_DIR') or None,
            domain=os.getenv('DOMAIN', 'http://localhost:4242').rstrip('/'),
            stripe_secret_key=os.getenv('STRIPE_SECRET_KEY', ''),
            stripe_publishable_key=os.getenv('STRIPE_PUBLISHABLE_KEY'),
            basic_price_id=os.getenv('BASIC_PRICE_ID'),
            pro_price_id=os.getenv('PRO_PRICE_ID'),
            # An empty secret disables signature checks
            stripe_webhook_secret=os.getenv('STRIPE_WEBHOOK_SECRET') or None,
            client_reference_id=os.getenv('CLIENT_REFERENCE_ID', 'blackjackptit'),
        )

    @property
    def webhook_signing_enabled(self) -> bool:
        return bool(self.stripe_webhook_secret)

    def validate_required(self) -> bool:
        required_vars = {
            'STRIPE_SECRET_KEY': self.stripe_secret_key,
            'STRIPE_PUBLISHABLE_KEY': self.stripe_publishable_key,
            'DOMAIN': self.domain,
        }

        missing_vars = [name for name, value in required_vars.items() if not value]
        if missing_vars:
            raise ValueError(f"Missing required environment variables: {', '.join(missing_vars)}")

        if not URL_PATTERN.match(self.domain):
            raise ValueError(f"Invalid DOMAIN format: '{self.domain}'. Expected format: https://example.com")

        return True
