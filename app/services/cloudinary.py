import logging
from typing import Iterable, List

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
from fastapi import HTTPException, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import AssetResourceTypeEnum
from app.crud.curriculum import curriculum as crud_curriculum
from app.schemas.asset import AssetRef, StoredAsset

logger = logging.getLogger(__name__)

cloudinary.config(
    cloud_name=settings.CLOUDINARY_CLOUD_NAME,
    api_key=settings.CLOUDINARY_API_KEY,
    api_secret=settings.CLOUDINARY_API_SECRET,
)

class CloudinaryService:

    async def upload(self, file: bytes, *, folder: str, resource_type: AssetResourceTypeEnum) -> StoredAsset:
        try:
            result = await run_in_threadpool(
                cloudinary.uploader.upload,
                file,
                folder=f"{settings.CLOUDINARY_FOLDER}/{folder}",
                resource_type=resource_type.value,
            )
        except cloudinary.exceptions.Error as e:
            logger.error(f"Cloudinary upload to {folder} failed: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="File upload failed.")

        duration = result.get("duration")
        return StoredAsset(
            url=result["secure_url"],
            public_id=result["public_id"],
            duration_seconds=round(duration) if duration is not None else None,
            bytes=result.get("bytes"),
        )

    async def upload_image(self, file: bytes, folder: str = "images") -> StoredAsset:
        return await self.upload(file, folder=folder, resource_type=AssetResourceTypeEnum.IMAGE)

    async def upload_video(self, file: bytes, folder: str = "videos") -> StoredAsset:
        return await self.upload(file, folder=folder, resource_type=AssetResourceTypeEnum.VIDEO)

    async def upload_raw(self, file: bytes, folder: str = "attachments") -> StoredAsset:
        return await self.upload(file, folder=folder, resource_type=AssetResourceTypeEnum.RAW)

    async def delete(self, asset: AssetRef) -> None:
        await run_in_threadpool(
            cloudinary.uploader.destroy,
            asset.public_id,
            resource_type=asset.resource_type.value,
            invalidate=True,
        )

    async def delete_unreferenced(self, db: Session, assets: Iterable[AssetRef]) -> List[AssetRef]:
        """Best-effort removal of blobs nothing points at any more. Failures are logged, never raised."""
        deleted = []
        for asset in dict.fromkeys(assets):
            try:
                if crud_curriculum.count_asset_references(db, public_id=asset.public_id) > 0:
                    logger.info(f"Keeping asset {asset.public_id}: still referenced")
                    continue
                await self.delete(asset)
                deleted.append(asset)
            except Exception as e:
                logger.warning(f"Failed to delete asset {asset.public_id} ({asset.resource_type.value}): {e}")
        return deleted

cloudinary_service = CloudinaryService()
