from typing import Optional

from pydantic import BaseModel

from app.core.constants import AssetResourceTypeEnum


class AssetRef(BaseModel):
    """A blob held by the asset store."""
    public_id: str
    resource_type: AssetResourceTypeEnum

    model_config = {"frozen": True}


class StoredAsset(BaseModel):
    url: str
    public_id: str
    duration_seconds: Optional[int] = None
    bytes: Optional[int] = None
