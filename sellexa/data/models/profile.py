import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from sellexa.utils.storage_urls import get_profile_avatar_url


class KYCStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class Profile(BaseModel):
    """Row of the ``profiles`` table. Sellers carry the business_* and kyc_* fields."""
    model_config = ConfigDict(extra="ignore")

    id: str
    handle: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    kyc_status: Optional[str] = None
    business_name: Optional[str] = None
    business_description: Optional[str] = None
    business_logo_url: Optional[str] = None
    business_address: Optional[str] = None
    business_city: Optional[str] = None
    business_country: Optional[str] = None
    business_phone: Optional[str] = None
    business_whatsapp: Optional[str] = None
    business_website: Optional[str] = None
    business_instagram: Optional[str] = None
    business_twitter: Optional[str] = None
    business_facebook: Optional[str] = None
    kyc_submitted_at: Optional[str] = None
    kyc_verified_at: Optional[str] = None
    kyc_rejection_reason: Optional[str] = None

    def avatar_public_url(self) -> Optional[str]:
        return get_profile_avatar_url(self.avatar_url) if self.avatar_url else None


# Columns fetched when showing another user's profile
PUBLIC_PROFILE_COLUMNS = """
    id,
    handle,
    name,
    avatar_url,
    city,
    postcode,
    created_at,
    kyc_status,
    business_name,
    business_logo_url
"""
