from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SaveData(BaseModel):
    """Save count of a product plus whether the current viewer saved it."""
    product_id: str
    save_count: int = 0
    is_saved: bool = False


class SavedProductSeller(BaseModel):
    model_config = ConfigDict(extra="ignore")

    handle: Optional[str] = None
    name: Optional[str] = None


class SavedProductSummary(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    title: str
    price_pence: int
    images: list[str] = Field(default_factory=list)
    status: str
    profiles: Optional[SavedProductSeller] = None


class SavedProduct(BaseModel):
    model_config = ConfigDict(extra="ignore")

    product_id: str
    created_at: Optional[str] = None
    product: SavedProductSummary


SAVED_PRODUCT_COLUMNS = """
    product_id,
    created_at,
    product:products!inner(
        id,
        title,
        price_pence,
        images,
        status,
        profiles:profiles!products_user_id_fkey(
            handle,
            name
        )
    )
"""
