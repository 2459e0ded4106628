import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from sellexa.utils.storage_urls import get_product_image_url


class ProductStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    RESTOCKING = "RESTOCKING"
    SOLD = "SOLD"


class ProductCategory(str, enum.Enum):
    FOOD = "FOOD"
    FASHION = "FASHION"
    HAIR = "HAIR"
    HOME = "HOME"
    CULTURE = "CULTURE"
    OTHER = "OTHER"


class SellerSummary(BaseModel):
    """Seller profile fields joined onto product rows."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    handle: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    business_name: Optional[str] = None
    business_logo_url: Optional[str] = None
    created_at: Optional[str] = None


class Product(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    title: str
    description: Optional[str] = None
    price_pence: int
    status: ProductStatus = ProductStatus.AVAILABLE
    images: list[str] = Field(default_factory=list)
    city: Optional[str] = None
    postcode: Optional[str] = None
    category: ProductCategory = ProductCategory.OTHER
    tags: list[str] = Field(default_factory=list)
    user_id: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    profiles: Optional[SellerSummary] = None

    def image_urls(self) -> list[str]:
        urls = (get_product_image_url(path) for path in self.images)
        return [url for url in urls if url]


class FeedSection(BaseModel):
    """Products of one seller on the feed."""
    seller: Optional[SellerSummary] = None
    products: list[Product] = Field(default_factory=list)


class ProductFilters(BaseModel):
    query: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None
    city: Optional[str] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None


FEED_COLUMNS = """
    id,
    title,
    price_pence,
    status,
    images,
    city,
    category,
    user_id,
    created_at,
    profiles:profiles!products_user_id_fkey(
        handle,
        name,
        avatar_url,
        business_name,
        business_logo_url
    )
"""

LIST_COLUMNS = """
    id,
    title,
    price_pence,
    status,
    images,
    city,
    category,
    user_id,
    created_at,
    profiles:profiles!products_user_id_fkey(
        handle,
        name,
        avatar_url
    )
"""

DETAIL_COLUMNS = """
    id,
    title,
    description,
    price_pence,
    status,
    images,
    city,
    postcode,
    category,
    tags,
    user_id,
    created_at,
    profiles:profiles!products_user_id_fkey(
        handle,
        name,
        avatar_url,
        created_at
    )
"""

SELLER_COLUMNS = """
    id,
    title,
    price_pence,
    status,
    images,
    city,
    category,
    created_at,
    description,
    user_id
"""
